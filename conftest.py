import django
from django.conf import settings


def pytest_configure():
    settings.configure(
        DEBUG=True,
        SECRET_KEY='tmsim-tests',
        ALLOWED_HOSTS=['testserver'],
        ROOT_URLCONF='tmsim.urls',
        INSTALLED_APPS=[
            'django.contrib.contenttypes',
            'tmsim',
        ],
        DATABASES={
            'default': {
                'ENGINE': 'django.db.backends.sqlite3',
                'NAME': ':memory:',
            }
        },
        LOGGING={
            'version': 1,
            'disable_existing_loggers': False,
            'handlers': {'console': {'class': 'logging.StreamHandler'}},
            'loggers': {'tmsim': {'handlers': ['console'], 'level': 'WARNING'}},
        },
        TMSIM_MAX_STEPS=1000,
    )
    django.setup()
