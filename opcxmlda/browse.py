"""Namespace traversal over paged Browse calls.

BrowseTree walks the server namespace depth-first, fetching every page of
a node's children before yielding them sorted by label. A node identity
(item_path, item_name) is expanded at most once per walk, so namespaces
with cycles or shared subtrees terminate; a repeated identity is still
listed wherever it appears. The first failed page aborts the walk.
"""

import time
from collections.abc import AsyncIterator, Iterator
from dataclasses import dataclass
from typing import Protocol

from opcxmlda.errors import BrowseCancelledError, BrowseError, OpcXmlDaError, ProtocolError
from opcxmlda.observability.logging import get_logger
from opcxmlda.observability.metrics import BROWSE_NODES_EXPANDED, BROWSE_PAGES
from opcxmlda.service.models import (
    BrowseElement,
    BrowseFilter,
    BrowseRequest,
    BrowseResponse,
    OPCError,
)

logger = get_logger(__name__)

ROOT_LABEL = "<root>"
UNNAMED_LABEL = "<unnamed>"
UNKNOWN_ERROR = "unknown error"


class BrowseService(Protocol):
    """Anything that can fetch one page of a node's children."""

    async def browse(self, request: BrowseRequest) -> BrowseResponse: ...


@dataclass(frozen=True)
class TreeLine:
    """One line of the browse tree.

    has_children is as reported by the server; it is False for the root.
    """

    depth: int
    label: str
    has_children: bool


class CancelSignal:
    """Caller-owned cancellation for a walk.

    Fires when cancel() is called or, if a deadline was set, once the
    monotonic clock passes it. Checked before every page fetch.
    """

    def __init__(self, deadline: float | None = None) -> None:
        self._deadline = deadline
        self._cancelled = False

    @classmethod
    def after(cls, seconds: float) -> "CancelSignal":
        """Signal that fires `seconds` from now."""
        return cls(deadline=time.monotonic() + seconds)

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        if self._cancelled:
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline


def browse_key(item_path: str, item_name: str) -> str:
    """Identity key of a node."""
    return item_path + "\x00" + item_name


def element_label(element: BrowseElement) -> str:
    if element.name:
        return element.name
    if element.item_name:
        return element.item_name
    if element.item_path:
        return element.item_path
    return UNNAMED_LABEL


def root_label(item_path: str, item_name: str) -> str:
    return item_name or item_path or ROOT_LABEL


def format_opc_errors(errors: list[OPCError]) -> str:
    """Render server errors as one line, "ID: text" where an ID exists."""
    parts: list[str] = []
    for error in errors:
        if error.id:
            parts.append(f"{error.id}: {error.text}")
        elif error.text:
            parts.append(error.text)
    if not parts:
        return UNKNOWN_ERROR
    return "; ".join(parts)


def _describe(item_path: str, item_name: str) -> str:
    return f"item_path={item_path!r} item_name={item_name!r}"


class BrowseTree:
    """Depth-first, depth-bounded walk of a server namespace.

    Args:
        service: Issues the Browse calls
        locale_id: LocaleID sent with every page request
        client_request_handle: ClientRequestHandle sent with every page request
    """

    def __init__(
        self,
        service: BrowseService,
        locale_id: str = "",
        client_request_handle: str = "",
    ) -> None:
        self._service = service
        self._locale_id = locale_id
        self._client_request_handle = client_request_handle

    async def list_all(
        self,
        item_path: str,
        item_name: str,
        cancel: CancelSignal | None = None,
    ) -> list[BrowseElement]:
        """Fetch every page of a node's children, in server order.

        Raises:
            BrowseCancelledError: If the signal fired before a page fetch
            BrowseError: If a page fails; the cause is chained
        """
        elements: list[BrowseElement] = []
        continuation = ""

        while True:
            if cancel is not None and cancel.cancelled:
                raise BrowseCancelledError(
                    f"browse cancelled: {_describe(item_path, item_name)}",
                    item_path=item_path,
                    item_name=item_name,
                )

            logger.debug(
                "browse_page_request",
                item_path=item_path,
                item_name=item_name,
                continuation=continuation,
            )
            request = BrowseRequest(
                locale_id=self._locale_id,
                client_request_handle=self._client_request_handle,
                item_path=item_path,
                item_name=item_name,
                continuation_point=continuation,
                browse_filter=BrowseFilter.ALL,
                return_error_text=True,
            )
            try:
                page = await self._service.browse(request)
                if page.errors:
                    raise ProtocolError(format_opc_errors(page.errors), errors=page.errors)
            except OpcXmlDaError as e:
                raise BrowseError(
                    f"browse {_describe(item_path, item_name)}: {e.message}",
                    item_path=item_path,
                    item_name=item_name,
                ) from e

            BROWSE_PAGES.inc()
            logger.debug(
                "browse_page_response",
                elements=len(page.elements),
                more_elements=page.more_elements,
            )
            elements.extend(page.elements)

            if not page.more_elements or not page.continuation_point:
                return elements
            continuation = page.continuation_point

    async def _children(
        self,
        item_path: str,
        item_name: str,
        cancel: CancelSignal | None,
    ) -> Iterator[BrowseElement]:
        elements = await self.list_all(item_path, item_name, cancel)
        BROWSE_NODES_EXPANDED.inc()
        return iter(sorted(elements, key=element_label))

    async def walk(
        self,
        item_path: str = "",
        item_name: str = "",
        max_depth: int = 1,
        cancel: CancelSignal | None = None,
    ) -> AsyncIterator[TreeLine]:
        """Yield the tree below (item_path, item_name), root first.

        Children are fetched lazily as the iteration reaches them. Depth 1
        lists only the direct children of the root; depth <= 0 yields the
        root line alone.
        """
        yield TreeLine(depth=0, label=root_label(item_path, item_name), has_children=False)
        if max_depth <= 0:
            return

        visited = {browse_key(item_path, item_name)}
        stack = [(await self._children(item_path, item_name, cancel), 1)]

        while stack:
            siblings, depth = stack[-1]
            element = next(siblings, None)
            if element is None:
                stack.pop()
                continue

            yield TreeLine(depth=depth, label=element_label(element), has_children=element.has_children)

            if not element.has_children or depth >= max_depth:
                continue
            key = browse_key(element.item_path, element.item_name)
            if key in visited:
                continue
            visited.add(key)
            stack.append((await self._children(element.item_path, element.item_name, cancel), depth + 1))
