from fastapi import Depends
from slowapi import Limiter
from slowapi.util import get_remote_address
from campus_events.auth import CallerIdentity, get_caller
from campus_events.clients.profile_client import ProfileServiceClient

limiter = Limiter(key_func=get_remote_address)


def get_profile_client(caller: CallerIdentity = Depends(get_caller)) -> ProfileServiceClient:
    """Profile service client that forwards the caller's credential."""
    return ProfileServiceClient(credentials=caller.token)
