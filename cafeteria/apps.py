from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class CafeteriaConfig(AppConfig):
    name = "cafeteria"
    verbose_name = _("Cafeteria - Orders & Loyalty")
