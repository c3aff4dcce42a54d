def stripe_field(obj, key, default=None):
    """Read a key from a Stripe object or plain dict; missing keys give `default`."""
    if obj is None or isinstance(obj, str):
        return default
    try:
        value = obj[key]
    except (KeyError, TypeError):
        return default
    return default if value is None else value
