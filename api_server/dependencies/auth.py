# Owner identity for todo requests.
#
# There is no authentication yet: every request acts on behalf of the same
# placeholder owner. Replace get_current_owner with token verification once
# an identity provider is in place.

USERNAME = "anonymous"


async def get_current_owner() -> str:
    """Owner identity attached to every backend call."""
    return USERNAME
