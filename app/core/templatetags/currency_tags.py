from django import template

from core.currency import format_amount

register = template.Library()


@register.filter
def brl(value):
    return format_amount(value)
