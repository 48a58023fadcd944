"""Response handling for S3 REST requests.

GuardedResponse validates a raw httpx response before any of its body is
consumed and exposes an XmlCursor for walking the XML document S3 sends
back. Element names are reported without their namespace, since S3 wraps
every document in ``http://s3.amazonaws.com/doc/2006-03-01/`` while callers
only care about local names.
"""

import logging
from collections import deque
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional
from xml.etree import ElementTree

import httpx

from s3rest.errors import AuthorizationRejectedError, ProgrammingError

logger = logging.getLogger(__name__)

# Where S3 redirects requests it refuses to treat as authenticated
REJECTED_REQUEST_LOCATION = "http://aws.amazon.com/s3"


def local_name(tag: str) -> str:
    """Strip the ``{namespace}`` qualifier from an ElementTree tag."""
    if tag[:1] == "{":
        return tag.partition("}")[2]
    return tag


@dataclass
class XmlNode:
    """A start or end event for one element of the document.

    Element text is only complete once the element's end event is reached.
    """

    event: str
    name: str
    element: ElementTree.Element

    @property
    def is_start(self) -> bool:
        return self.event == "start"

    @property
    def is_end(self) -> bool:
        return self.event == "end"

    @property
    def text(self) -> str:
        return self.element.text or ""

    @property
    def attrib(self) -> dict[str, str]:
        return {local_name(k): v for k, v in self.element.attrib.items()}


class XmlCursor:
    """Forward-only cursor over an XML document arriving in chunks.

    The body is fed to the parser on demand, and each element is detached
    from its parent once the cursor moves past its end node. Memory use
    follows the depth of the document, not its length. On construction the
    cursor is advanced to the document element; the XML declaration,
    comments and surrounding whitespace are never reported. Text inside
    elements is kept exactly as sent.

    Args:
        chunks: Iterable of body byte chunks, typically
               ``response.iter_bytes()``.

    Raises:
        xml.etree.ElementTree.ParseError: If the body is not well-formed XML.
    """

    def __init__(self, chunks: Iterable[bytes]):
        self._chunks = iter(chunks)
        self._parser = ElementTree.XMLPullParser(events=("start", "end"))
        self._pending: deque[XmlNode] = deque()
        self._open: list[ElementTree.Element] = []
        self._holding = 0
        self._exhausted = False
        self._closed = False
        self.node: Optional[XmlNode] = None
        self.read()

    def _fill(self) -> bool:
        while not self._pending:
            if self._exhausted:
                return False
            chunk = next(self._chunks, None)
            if chunk is None:
                self._exhausted = True
                self._parser.close()
            else:
                self._parser.feed(chunk)
            for event, element in self._parser.read_events():
                self._pending.append(XmlNode(event, local_name(element.tag), element))
        return True

    def _release(self) -> None:
        # Drop a finished element unless read_element_text still needs it
        if self.node is None or not self.node.is_end or self._holding:
            return
        if self._open:
            self._open[-1].remove(self.node.element)

    def read(self) -> bool:
        """Advance to the next node. Returns False at the end of the document."""
        self._release()
        if self._closed or not self._fill():
            self.node = None
            return False
        self.node = self._pending.popleft()
        if self.node.is_start:
            self._open.append(self.node.element)
        else:
            self._open.pop()
        return True

    def read_to(self, name: str) -> bool:
        """Advance to the next start of an element called ``name``.

        The current node is considered first. Returns False if the document
        ends without one.
        """
        while self.node is not None:
            if self.node.is_start and self.node.name == name:
                return True
            self.read()
        return False

    def read_element_text(self) -> str:
        """Consume the current element and return all of its text.

        The cursor must be on a start node; it is left on the matching end
        node.
        """
        if self.node is None or not self.node.is_start:
            raise ProgrammingError("Cursor is not positioned at an element start")
        element = self.node.element
        self._holding += 1
        try:
            while not (self.node.is_end and self.node.element is element):
                if not self.read():
                    raise ElementTree.ParseError(f"Unterminated element: {local_name(element.tag)}")
        finally:
            self._holding -= 1
        return "".join(element.itertext())

    def __iter__(self) -> Iterator[XmlNode]:
        while self.node is not None:
            yield self.node
            self.read()

    def close(self) -> None:
        """Stop reading. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._pending.clear()
        self._open.clear()
        self.node = None
        close = getattr(self._chunks, "close", None)
        if close is not None:
            close()


def check_response(response: httpx.Response) -> None:
    """Raise if the server bounced the request as unauthenticated.

    Raises:
        AuthorizationRejectedError: On a 307 redirect to the S3 home page.
    """
    location = response.headers.get("Location")
    if (
        response.status_code == httpx.codes.TEMPORARY_REDIRECT
        and location == REJECTED_REQUEST_LOCATION
    ):
        logger.warning(
            "Request redirected to %s with status %d, treating as rejected",
            location,
            response.status_code,
        )
        raise AuthorizationRejectedError(
            "The request was rejected by the S3 server. "
            "Did you forget to authorize the request?",
            status_code=response.status_code,
            location=location,
        )


class GuardedResponse:
    """A validated S3 response with a lazily created XML reader.

    Construction fails with AuthorizationRejectedError before any of the body
    is read. Closing releases the underlying httpx response; closing twice is
    harmless.
    """

    def __init__(self, response: httpx.Response):
        check_response(response)
        self.response = response
        self._reader: Optional[XmlCursor] = None
        self._closed = False

    @property
    def status_code(self) -> int:
        return self.response.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self.response.headers

    @property
    def is_success(self) -> bool:
        return self.response.is_success

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def reader(self) -> XmlCursor:
        """XML cursor over the body, created on first access."""
        if self._closed:
            raise ProgrammingError("Response has already been closed")
        if self._reader is None:
            self._reader = XmlCursor(self.response.iter_bytes())
        return self._reader

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._reader is not None:
            self._reader.close()
        self.response.close()

    def __enter__(self) -> "GuardedResponse":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False
