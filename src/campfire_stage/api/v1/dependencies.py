"""Shared API dependencies for authentication and service wiring."""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from campfire_stage.core.security import Identity, InvalidTokenError, decode_access_token
from campfire_stage.db.session import get_db
from campfire_stage.services.group_service import (
    GroupInactiveError,
    GroupNotFoundError,
    GroupService,
    PermissionDeniedError,
)
from campfire_stage.services.message_service import MessageNotFoundError, MessageService
from campfire_stage.services.self_destruct import SelfDestructService, SweepError
from campfire_stage.services.sql_store import SqlDocumentStore
from campfire_stage.services.store import DocumentStore, StoreError

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_current_identity(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> Identity:
    """Resolve the caller from the identity provider's bearer token.

    Raises:
        HTTPException: If the token is missing, invalid or expired.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return decode_access_token(credentials.credentials)
    except InvalidTokenError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        ) from err


def get_store(db: SessionDep) -> DocumentStore:
    """Build a document store bound to the request's database session."""
    return SqlDocumentStore(db)


StoreDep = Annotated[DocumentStore, Depends(get_store)]


def get_self_destruct_service(store: StoreDep) -> SelfDestructService:
    return SelfDestructService(store)


SelfDestructDep = Annotated[SelfDestructService, Depends(get_self_destruct_service)]


def get_group_service(store: StoreDep, self_destruct: SelfDestructDep) -> GroupService:
    return GroupService(store, self_destruct)


GroupServiceDep = Annotated[GroupService, Depends(get_group_service)]


def get_message_service(
    store: StoreDep,
    groups: GroupServiceDep,
    self_destruct: SelfDestructDep,
) -> MessageService:
    return MessageService(store, groups, self_destruct)


MessageServiceDep = Annotated[MessageService, Depends(get_message_service)]

# Type alias for current user dependency
CurrentIdentityDep = Annotated[Identity, Depends(get_current_identity)]


@contextmanager
def service_errors() -> Iterator[None]:
    """Translate service exceptions into HTTP errors."""
    try:
        yield
    except GroupNotFoundError as err:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Group not found"
        ) from err
    except MessageNotFoundError as err:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Message not found"
        ) from err
    except GroupInactiveError as err:
        raise HTTPException(
            status_code=status.HTTP_410_GONE, detail="Group has self-destructed"
        ) from err
    except PermissionDeniedError as err:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(err)) from err
    except (SweepError, StoreError) as err:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Storage temporarily unavailable",
        ) from err
