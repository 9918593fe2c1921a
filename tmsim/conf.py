from django.conf import settings

# Step ceiling for API runs that do not give one
MAX_STEPS = getattr(settings, 'TMSIM_MAX_STEPS', 10000)

# Seed for transition tie-breaking when a request does not give one (None: unseeded)
RANDOM_SEED = getattr(settings, 'TMSIM_RANDOM_SEED', None)

# Milliseconds between streamed steps, by execution speed
EXECUTION_DELAYS = getattr(settings, 'TMSIM_EXECUTION_DELAYS', {
    'slow': 1200,
    'medium': 800,
    'fast': 400,
    'superfast': 200,
    'ultrafast': 10,
})

DEFAULT_SPEED = getattr(settings, 'TMSIM_DEFAULT_SPEED', 'ultrafast')
