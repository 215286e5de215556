# src/preload_hints/core/services/html_scan_service.py
import logging
from typing import Dict, Iterator, List
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from preload_hints.core.services.manifest_service import ManifestService
from preload_hints.model import Compilation, ChunkReference, HtmlPluginData

logger = logging.getLogger(__name__)


class HtmlScanService:
    """
    Finds the chunks an existing HTML document already loads.

    Scripts (`<script src>`) and stylesheets (`<link rel="stylesheet" href>`)
    are matched against the chunk files of the compilation; every chunk with a
    matching file becomes a root reference of the document.
    """

    def __init__(self, compilation: Compilation):
        self.compilation = compilation
        self._owners = {
            entry.lstrip("/"): chunk_hash
            for entry, chunk_hash in ManifestService.chunk_hash_by_file(compilation).items()
        }
        self._chunks_by_hash = {c.rendered_hash: c for c in compilation.chunks}

    def referenced_urls(self, html: str) -> List[str]:
        """Returns the script and stylesheet URLs of the document in document order."""
        soup = BeautifulSoup(html, "html.parser")
        urls = []
        for tag in soup.find_all(["script", "link"]):
            if tag.name == "script" and tag.get("src"):
                urls.append(tag["src"])
            elif tag.name == "link" and tag.get("href") and "stylesheet" in (tag.get("rel") or []):
                urls.append(tag["href"])
        return urls

    def _strip_public_path(self, url: str) -> str:
        public_path = self.compilation.public_path
        if public_path and url.startswith(public_path):
            url = url[len(public_path):]
        return urlparse(url).path.lstrip("/")

    def _matching_hashes(self, url: str) -> Iterator[str]:
        path = self._strip_public_path(url)
        if not path:
            return
        owner = self._owners.get(path)
        if owner:
            yield owner
            return
        # Fall back to a suffix match for absolute or prefixed URLs
        for entry, chunk_hash in self._owners.items():
            if path.endswith("/" + entry):
                yield chunk_hash
                return

    def find_roots(self, html: str) -> Dict[str, ChunkReference]:
        """Maps chunk names (or ids) to references for every chunk the document loads."""
        roots: Dict[str, ChunkReference] = {}
        for url in self.referenced_urls(html):
            for chunk_hash in self._matching_hashes(url):
                chunk = self._chunks_by_hash[chunk_hash]
                key = chunk.name or str(chunk.id)
                if key not in roots:
                    roots[key] = ChunkReference(hash=chunk_hash, entry=url)
                    logger.debug("Document references chunk '%s' via %s", key, url)
        if not roots:
            logger.info("Document references none of the build's chunks.")
        return roots

    def build_plugin_data(self, html: str, output_name: str) -> HtmlPluginData:
        return HtmlPluginData(html=html, chunks=self.find_roots(html), output_name=output_name)
