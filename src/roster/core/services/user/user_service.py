from loguru import logger

from src.roster.core.exceptions import UserNotFoundError
from src.roster.core.models.pagination import PageMetadata, UserPage, UserQuery
from src.roster.core.storage.record_store import RecordStore
from src.roster.entities.user import User, UserCreate, UserUpdate, derive_username


class UserService:
    """Listing and mutation of roster users.

    The service never keeps records of its own: it reads and replaces
    entries of the store's collection while holding the store lock, and asks
    the store to persist after every mutation. Records are replaced rather
    than modified in place, so pages handed out earlier never change under
    the caller.
    """

    def __init__(
        self,
        store: RecordStore,
        username_enabled: bool = True,
        default_limit: int = 50,
    ):
        self._store = store
        self._username_enabled = username_enabled
        self._default_limit = default_limit

    @property
    def username_enabled(self) -> bool:
        return self._username_enabled

    def get_users(
        self,
        page: int = 1,
        limit: int | None = None,
        search: str | None = None,
        is_active: bool | None = None,
    ) -> UserPage:
        """Filter the roster and return one page window plus metadata.

        The window is ``[(page - 1) * limit, (page - 1) * limit + limit)`` with
        list slice semantics, so a page past the end is empty. Pages below 1
        are not rejected and follow the same arithmetic (negative bounds
        count from the end of the filtered list).

        Raises:
            ValueError: If ``limit`` is lower than 1.
        """
        query = UserQuery(
            page=page,
            limit=self._default_limit if limit is None else limit,
            search=search,
            is_active=is_active,
        )

        with self._store.lock:
            filtered = [user for user in self._store.records if self._keep(user, query)]

        window = filtered[query.start_index:query.end_index]
        return UserPage(
            data=window,
            metadata=PageMetadata.compute(query.page, query.limit, len(filtered)),
        )

    def get_all_users(self) -> list[User]:
        """Return the whole roster in insertion order, unpaginated."""
        with self._store.lock:
            return list(self._store.records)

    def get_user_by_id(self, user_id: str) -> User:
        with self._store.lock:
            return self._store.records[self._index_of(user_id)]

    def create_user(self, payload: UserCreate) -> User:
        """Append a new user with a fresh id and persist the roster."""
        data = payload.model_dump(exclude_unset=True)
        if not self._username_enabled:
            data.pop("username", None)
        elif not data.get("username"):
            data["username"] = derive_username(payload.name, payload.last_name)
        if data.get("is_active") is None:
            data["is_active"] = True

        with self._store.lock:
            user = User(id=self._store.new_id(), **data)
            self._store.records.append(user)
            self._store.persist()

        logger.info("Created user {}", user.record_id)
        return user

    def update_user(self, user_id: str, payload: UserUpdate) -> User:
        """Shallow-merge the supplied fields onto an existing user.

        Omitted fields keep their values and the id can never change.
        """
        changes = payload.changes()
        changes.pop("id", None)
        if not self._username_enabled:
            changes.pop("username", None)

        with self._store.lock:
            index = self._index_of(user_id)
            updated = self._store.records[index].model_copy(update=changes)
            self._store.records[index] = updated
            self._store.persist()

        logger.info("Updated user {} fields={}", user_id, sorted(changes))
        return updated

    def deactivate_user(self, user_id: str) -> User:
        return self.update_user(user_id, UserUpdate(is_active=False))

    def activate_user(self, user_id: str) -> User:
        return self.update_user(user_id, UserUpdate(is_active=True))

    def _index_of(self, user_id: str) -> int:
        for index, user in enumerate(self._store.records):
            if user.record_id == user_id:
                return index
        raise UserNotFoundError(user_id)

    def _keep(self, user: User, query: UserQuery) -> bool:
        if query.search and not self._matches(user, query.search):
            return False
        if query.is_active is not None and user.is_active != query.is_active:
            return False
        return True

    def _matches(self, user: User, search: str) -> bool:
        needle = search.lower()
        text_fields = [user.name, user.last_name, user.email]
        if self._username_enabled:
            text_fields.append(user.username)
        if any(value is not None and needle in value.lower() for value in text_fields):
            return True
        # Phone numbers are compared verbatim; older files hold them as numbers.
        return user.phone is not None and search in str(user.phone)
