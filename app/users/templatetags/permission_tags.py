from django import template

from users.permissions import can_view_contacts as _can_view_contacts
from users.permissions import user_has_permission

register = template.Library()


@register.filter
def can_access(user, permission_key):
    """{% if user|can_access:"proposals:proposal_create" %}"""
    if not permission_key:
        return False
    return user_has_permission(user, str(permission_key))


@register.filter
def can_view_contacts(user):
    return _can_view_contacts(user)
