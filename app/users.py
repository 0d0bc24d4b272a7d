"""User management routes for the Users API."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from . import coordinator, schemas
from .database import get_db

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("", response_model=schemas.UserListResponse)
def list_users(db: Session = Depends(get_db)):
    """
    Retrieve every user with its secondary addresses.

    Args:
        db (Session): Database session.

    Returns:
        UserListResponse: Envelope with the list of users.
    """
    users = coordinator.list_users(db)
    return schemas.UserListResponse(
        data=[schemas.UserOut.model_validate(u) for u in users]
    )


@router.post(
    "", response_model=schemas.UserResponse, status_code=status.HTTP_201_CREATED
)
def create_user(user_in: schemas.UserCreate, db: Session = Depends(get_db)):
    """
    Register a new user with optional secondary addresses.

    Args:
        user_in (UserCreate): Registration data.
        db (Session): Database session.

    Returns:
        UserResponse: Envelope with the created user.
    """
    user = coordinator.create_user(db, user_in)
    return schemas.UserResponse(
        message="User created successfully",
        data=schemas.UserOut.model_validate(user),
    )


@router.get("/{user_id}", response_model=schemas.UserResponse)
def get_user(user_id: int, db: Session = Depends(get_db)):
    """
    Retrieve a single user by ID.

    Args:
        user_id (int): User identifier.
        db (Session): Database session.

    Raises:
        NotFoundError: If the user is not found.

    Returns:
        UserResponse: Envelope with the user.
    """
    user = coordinator.get_user(db, user_id)
    return schemas.UserResponse(data=schemas.UserOut.model_validate(user))


@router.put("/{user_id}", response_model=schemas.UserResponse)
@router.patch("/{user_id}", response_model=schemas.UserResponse)
def update_user(
    user_id: int, user_in: schemas.UserUpdate, db: Session = Depends(get_db)
):
    """
    Partially update a user.

    Only fields provided in the request are changed. Sending ``emails``
    replaces the whole set of secondary addresses.

    Args:
        user_id (int): User identifier.
        user_in (UserUpdate): Fields to update.
        db (Session): Database session.

    Returns:
        UserResponse: Envelope with the updated user.
    """
    user = coordinator.update_user(db, user_id, user_in)
    return schemas.UserResponse(
        message="User updated successfully",
        data=schemas.UserOut.model_validate(user),
    )


@router.delete("/{user_id}", response_model=schemas.MessageResponse)
def delete_user(user_id: int, db: Session = Depends(get_db)):
    """
    Delete a user together with its secondary addresses.

    Args:
        user_id (int): User identifier.
        db (Session): Database session.

    Returns:
        MessageResponse: Deletion status.
    """
    coordinator.delete_user(db, user_id)
    return schemas.MessageResponse(message="User deleted successfully")


@router.post("/{user_id}/send-welcome-email", response_model=schemas.NotificationResponse)
async def send_welcome_email(user_id: int, db: Session = Depends(get_db)):
    """
    Send the welcome email to every address of a user.

    Args:
        user_id (int): User identifier.
        db (Session): Database session.

    Returns:
        NotificationResponse: Number of addresses attempted and failed.
    """
    report = await coordinator.notify_user(db, user_id)
    return schemas.NotificationResponse(
        message="Welcome emails sent to all user addresses",
        emails_sent=report.sent_count,
        emails_failed=report.failed_count,
    )
