from django.urls import path
from . import views

urlpatterns = [
    # Run a machine on a tape until it halts
    path('api/run-machine/', views.run_machine, name='run_machine'),
    path('api/run-machine-stream/', views.run_machine_stream, name='run_machine_stream'),

    # Single stepping with optional choices between nondeterministic transitions
    path('api/step-machine/', views.step_machine, name='step_machine'),

    # Pre-flight checks
    path('api/check-machine/', views.check_machine, name='check_machine'),
    path('api/check-deterministic/', views.check_deterministic, name='check_deterministic'),
    path('api/check-alphabet/', views.check_alphabet, name='check_alphabet'),
]
