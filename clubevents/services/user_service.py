"""Member administration."""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from clubevents.context import ServiceContext
from clubevents.errors import DuplicateUsername, Forbidden, NotFound, StorageFailure
from clubevents.identity import Identity, require_admin
from clubevents.repositories.users import UsersRepository
from clubevents.schemas import UserCreate, UserUpdate, UserView

# Fields a member may change on their own account.
SELF_SERVICE_FIELDS = frozenset({"email"})


async def list_users(ctx: ServiceContext, identity: Identity) -> list[UserView]:
    require_admin(identity)
    try:
        async with ctx.session_factory() as session:
            users = await UsersRepository.list_all(session)
    except SQLAlchemyError as exc:
        raise StorageFailure("Users could not be loaded") from exc
    return [UserView.model_validate(user) for user in users]


async def get_user(ctx: ServiceContext, identity: Identity, username: str) -> UserView:
    if username != identity.username:
        require_admin(identity)
    try:
        async with ctx.session_factory() as session:
            user = await UsersRepository.get_by_username(session, username)
    except SQLAlchemyError as exc:
        raise StorageFailure("User could not be loaded", username=username) from exc
    if user is None:
        raise NotFound(f"User {username} does not exist", username=username)
    return UserView.model_validate(user)


async def create_user(ctx: ServiceContext, identity: Identity, payload: UserCreate) -> UserView:
    require_admin(identity)
    try:
        async with ctx.session_factory() as session:
            async with session.begin():
                if await UsersRepository.exists_by_username(session, payload.username):
                    raise DuplicateUsername(f"Username {payload.username} already exists", username=payload.username)
                user = await UsersRepository.create(session, **payload.model_dump())
    except IntegrityError as exc:
        raise DuplicateUsername(f"Username {payload.username} already exists", username=payload.username) from exc
    except SQLAlchemyError as exc:
        raise StorageFailure("User could not be created", username=payload.username) from exc

    ctx.logger.info("user_created", username=user.username, role=user.role.value, admin=identity.username)
    return UserView.model_validate(user)


async def update_user(
    ctx: ServiceContext,
    identity: Identity,
    username: str,
    payload: UserUpdate,
) -> UserView:
    """Admins may change everything; members only their own contact address."""

    changes = payload.model_dump(exclude_unset=True)
    if not identity.is_admin:
        if username != identity.username or not set(changes) <= SELF_SERVICE_FIELDS:
            raise Forbidden("Members may only change their own email address", username=identity.username)

    new_username = changes.pop("username", None)
    try:
        async with ctx.session_factory() as session:
            async with session.begin():
                user = await UsersRepository.get_by_username(session, username, for_update=True)
                if user is None:
                    raise NotFound(f"User {username} does not exist", username=username)

                for name, value in changes.items():
                    setattr(user, name, value)

                if new_username is not None and new_username != user.username:
                    if await UsersRepository.exists_by_username(session, new_username):
                        raise DuplicateUsername(f"Username {new_username} already exists", username=new_username)
                    await UsersRepository.rename(session, user, new_username)
    except IntegrityError as exc:
        raise DuplicateUsername(f"Username {new_username} already exists", username=new_username) from exc
    except SQLAlchemyError as exc:
        raise StorageFailure("User could not be updated", username=username) from exc

    ctx.logger.info(
        "user_updated",
        username=user.username,
        previous_username=username if user.username != username else None,
        fields=sorted(payload.model_fields_set),
        acting_user=identity.username,
    )
    return UserView.model_validate(user)


async def delete_user(ctx: ServiceContext, identity: Identity, username: str) -> None:
    require_admin(identity)
    try:
        async with ctx.session_factory() as session:
            async with session.begin():
                deleted = await UsersRepository.delete(session, username)
    except SQLAlchemyError as exc:
        raise StorageFailure("User could not be deleted", username=username) from exc

    if not deleted:
        raise NotFound(f"User {username} does not exist", username=username)
    ctx.logger.info("user_deleted", username=username, admin=identity.username)
