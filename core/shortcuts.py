from django.conf import settings
from django.utils.module_loading import import_string


def convert_to_decimal(amount):

    amount = amount / settings.CENTS_MULTIPLICATION_FACTOR
    rounded_amount = round(amount, 2)
    return rounded_amount


def load_from_setting(setting_name):

    return import_string(getattr(settings, setting_name))()
