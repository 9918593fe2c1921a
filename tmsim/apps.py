from django.apps import AppConfig


class TmsimConfig(AppConfig):
    name = 'tmsim'
    verbose_name = 'Turing machine and DFSA simulator'
