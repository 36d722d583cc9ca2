"""Shared machinery for the state-exposure hooks.

A hook holds the data a view shows, one loading flag and one error slot per
class of operation, and async actions. Reads that fail record the error and
return; writes that fail record the error and raise ActionError. After every
successful write the hook re-runs its last list query and reloads the
selected entity, which is the only way views pick up changes.
"""
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Optional

from db.store import DocumentStore

logger = logging.getLogger(__name__)


class ActionError(Exception):
    """A hook action failed. `message` is what a user should be shown;
    `cause` is the underlying exception."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.message = message
        self.cause = cause
        super().__init__(message)


class Hook:
    DATA: tuple[str, ...] = ()
    FLAGS: tuple[str, ...] = ()
    ERRORS: tuple[str, ...] = ()
    ACTIONS: tuple[str, ...] = ()

    def __init__(self, store: DocumentStore):
        self.store = store

    def state(self) -> dict[str, Any]:
        """The hook record: data, loading flags, error slots and actions."""
        return {
            "data": {name: getattr(self, name) for name in self.DATA},
            "loading": {name: getattr(self, name) for name in self.FLAGS},
            "errors": {name: getattr(self, name) for name in self.ERRORS},
            "actions": {name: getattr(self, name) for name in self.ACTIONS},
        }

    def clear_errors(self) -> None:
        for name in self.ERRORS:
            setattr(self, name, None)

    @asynccontextmanager
    async def _tracking(
        self, flag: str, error_slot: str, message: str, reraise: bool
    ) -> AsyncIterator[None]:
        setattr(self, flag, True)
        setattr(self, error_slot, None)
        try:
            yield
        except Exception as exc:
            logger.error("%s: %s", message, exc, exc_info=True)
            error = ActionError(f"{message}: {exc}", cause=exc)
            setattr(self, error_slot, error)
            if reraise:
                raise error from exc
        finally:
            setattr(self, flag, False)


class EntityHook(Hook):
    """List + selected-item hook over one repository module.

    Subclasses set `repo` (a db.repositories module) and `noun`.
    """

    repo: Any = None
    noun = "item"

    DATA = ("items", "selected")
    FLAGS = ("loading", "loading_selected", "submitting")
    ERRORS = ("error", "selected_error", "submit_error")
    ACTIONS = ("fetch", "fetch_one", "search", "create", "update", "delete", "clear_selected")

    def __init__(self, store: DocumentStore):
        super().__init__(store)
        self.items: list = []
        self.selected: Any = None
        self.loading = False
        self.loading_selected = False
        self.submitting = False
        self.error: Optional[ActionError] = None
        self.selected_error: Optional[ActionError] = None
        self.submit_error: Optional[ActionError] = None
        self._last_query: tuple[Callable[..., Awaitable[None]], tuple] = (self.fetch, ())

    async def _decorate(self, items: list) -> list:
        return items

    async def _load(self, message: str, loader: Awaitable[list]) -> None:
        async with self._tracking("loading", "error", message, reraise=False):
            self.items = await self._decorate(await loader)

    async def fetch(
        self,
        filters=None,
        sort_field: Optional[str] = None,
        direction: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> None:
        self._last_query = (self.fetch, (filters, sort_field, direction, limit))
        kwargs: dict[str, Any] = {"filters": filters, "limit": limit}
        if sort_field is not None:
            kwargs["sort_field"] = sort_field
        if direction is not None:
            kwargs["direction"] = direction
        await self._load(f"Failed to fetch {self.noun}s", self.repo.list_all(self.store, **kwargs))

    async def search(self, term: str, limit: int = 10) -> None:
        self._last_query = (self.search, (term, limit))
        await self._load(
            f"Failed to search {self.noun}s for {term!r}",
            self.repo.search(self.store, term, limit),
        )

    async def fetch_one(self, entity_id: str) -> None:
        async with self._tracking(
            "loading_selected", "selected_error", f"Failed to fetch {self.noun} {entity_id}", reraise=False
        ):
            found = await self.repo.require(self.store, entity_id)
            self.selected = (await self._decorate([found]))[0]

    def clear_selected(self) -> None:
        self.selected = None

    async def refresh(self, entity_id: Optional[str] = None) -> None:
        """Re-run the last list query and reload the selected entity if it is entity_id."""
        loader, args = self._last_query
        await loader(*args)
        if self.selected is not None and (entity_id is None or self.selected.id == entity_id):
            await self.fetch_one(self.selected.id)

    async def create(self, data: dict) -> str:
        async with self._tracking("submitting", "submit_error", f"Failed to create {self.noun}", reraise=True):
            created = await self.repo.create(self.store, data)
            await self.refresh()
        return created.id

    async def update(self, entity_id: str, fields: dict) -> None:
        async with self._tracking(
            "submitting", "submit_error", f"Failed to update {self.noun} {entity_id}", reraise=True
        ):
            await self.repo.update(self.store, entity_id, fields)
            await self.refresh(entity_id)

    async def delete(self, entity_id: str) -> None:
        async with self._tracking(
            "submitting", "submit_error", f"Failed to delete {self.noun} {entity_id}", reraise=True
        ):
            await self.repo.delete(self.store, entity_id)
            if self.selected is not None and self.selected.id == entity_id:
                self.selected = None
            await self.refresh()
