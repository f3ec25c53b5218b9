#!/usr/bin/env python3

import logging
from contextlib import closing
from dataclasses import dataclass, field
from typing import Iterator, List, Optional

import requests

from ..config.manager import ARCHLINUX_MIRRORLIST_URL, FetchConfig
from ..errors import IncompleteReadError, TransportError, UnexpectedContentTypeError

logger = logging.getLogger(__name__)

EXPECTED_CONTENT_TYPE = "text/plain"
HTML_MARKER = "<!DOCTYPE html>"
COMMENTED_SERVER = "#Server"

def build_query(config: FetchConfig) -> str:
    """Build the mirror list query string.

    Protocols come first, then IP versions, then the country, each in the
    order they were selected. The country is passed through unescaped, so a
    value containing ``&`` or ``=`` ends up corrupting the query.
    """
    parameters = [protocol.to_parameter() for protocol in config.protocols]
    parameters.extend(version.to_parameter() for version in config.ip_versions)
    parameters.append(f"country={config.country}")
    return "&".join(parameters)

def uncomment_servers(line: str) -> str:
    """Activate every commented-out ``Server`` entry on the line"""
    return line.replace(COMMENTED_SERVER, "Server")

@dataclass
class FetchResult:
    url: str
    lines: List[str] = field(default_factory=list)
    complete: bool = True
    error: Optional[Exception] = None
    html_detected: bool = False

    def raise_for_incomplete(self) -> None:
        if not self.complete:
            raise IncompleteReadError(
                f"Mirror list truncated after {len(self.lines)} line(s): {self.error}",
                url=self.url,
                lines_read=len(self.lines),
            ) from self.error

class MirrorListFetcher:
    def __init__(self, base_url: str = ARCHLINUX_MIRRORLIST_URL,
                 timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None,
                 chunk_size: int = 8192):
        self.base_url = base_url
        self.timeout = timeout
        self.session = session
        self.chunk_size = chunk_size

    def build_url(self, config: FetchConfig) -> str:
        return f"{self.base_url}?{build_query(config)}"

    def fetch(self, config: FetchConfig) -> FetchResult:
        """Download the mirror list for the given selection.

        Raises ConfigError for an incomplete selection, TransportError when
        the server cannot be reached and UnexpectedContentTypeError when the
        answer is not plain text. A read error part way through the body does
        not raise: the lines read so far are returned with ``complete`` set
        to False and the cause in ``error``.
        """
        config.validate()
        url = self.build_url(config)
        logger.info(f"Requesting mirror list from {url}")

        get = self.session.get if self.session is not None else requests.get
        try:
            response = get(url, stream=True, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Failed to reach {url}: {e}", url=url) from e

        result = FetchResult(url=url)
        with closing(response):
            content_type = response.headers.get("Content-Type")
            if content_type != EXPECTED_CONTENT_TYPE:
                raise UnexpectedContentTypeError(content_type, url=url)

            try:
                for line in self.iter_lines(response):
                    if HTML_MARKER in line:
                        result.html_detected = True
                    result.lines.append(line)
            except requests.exceptions.RequestException as e:
                logger.warning(f"Stopped reading mirror list after {len(result.lines)} line(s): {e}")
                result.complete = False
                result.error = e

        logger.debug(f"Received {len(result.lines)} line(s) from {url}")
        return result

    def iter_lines(self, response: requests.Response) -> Iterator[str]:
        """Lazily yield the transformed lines of a response body.

        Every line keeps its terminating newline. Read errors propagate to
        the caller.
        """
        for raw in self._iter_raw_lines(response):
            line = raw.decode("utf-8", errors="replace")

            if HTML_MARKER in line:
                logger.warning("Found an HTML tag. Perhaps got HTML? Mirrorlist may not work!")

            yield uncomment_servers(line)

    def _iter_raw_lines(self, response: requests.Response) -> Iterator[bytes]:
        pending = b""
        try:
            for chunk in response.iter_content(chunk_size=self.chunk_size):
                if not chunk:
                    continue
                pieces = (pending + chunk).split(b"\n")
                pending = pieces.pop()
                for piece in pieces:
                    yield piece + b"\n"
        except requests.exceptions.RequestException:
            # Hand out the line cut short by the error before reporting it
            if pending:
                yield pending
            raise

        # Last line without a terminator
        if pending:
            yield pending
