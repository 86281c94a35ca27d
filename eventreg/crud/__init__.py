from . import event, revoked_token, user  # noqa: F401
