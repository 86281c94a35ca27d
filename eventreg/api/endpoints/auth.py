from typing import Any

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from eventreg.api import deps
from eventreg.schemas.user import Message, Token
from eventreg.schemas.user import User as UserSchema
from eventreg.schemas.user import UserCreate, UserLogin
from eventreg.services import session

router = APIRouter()


@router.post(
    "/register",
    response_model=UserSchema,
    status_code=status.HTTP_201_CREATED,
    summary="Register Account",
)  # type: ignore[misc]
async def register_account(
    user_in: UserCreate,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """
    **Register a New Account**

    Creates an account with the `user` role. The password is hashed with
    bcrypt before storage.

    **Request Body:**
    - `username` (string): Display name
    - `email` (string): Unique email address
    - `password` (string): Plain-text password

    **Errors:**
    - `400`: Email already registered, or missing/invalid fields
    """
    return await session.register(
        db, username=user_in.username, email=user_in.email, password=user_in.password
    )


@router.post("/login", response_model=Token, summary="User Login")  # type: ignore[misc]
async def login(
    credentials: UserLogin,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """
    **Authenticate and Get a Token**

    **Request Body:**
    - `email` (string)
    - `password` (string)

    **Response:**
    - `token`: JWT for the `Authorization: Bearer` header
    - `role`: The account's role (`user`, `organizer` or `admin`)

    **Example Request:**
    ```bash
    curl -X POST "/api/v1/login" \\
         -H "Content-Type: application/json" \\
         -d '{"email": "user@example.com", "password": "secret"}'
    ```

    **Errors:**
    - `400`: Unknown email or wrong password
    """
    token, role = await session.login(
        db, email=credentials.email, password=credentials.password
    )
    return Token(token=token, role=role)


@router.get("/logout", response_model=Message, summary="User Logout")  # type: ignore[misc]
async def logout(
    token: str = Depends(deps.get_token),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """
    **Logout**

    Adds the bearer token to the revocation list. Any later request with
    the same token is rejected with `401`. Logging out twice is harmless.
    """
    await session.logout(db, token)
    return Message(message="Logout successful")
