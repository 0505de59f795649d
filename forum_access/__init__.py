"""
Forum access-control service: role permission resolution and monthly key
verification with attempt lockout.
"""
