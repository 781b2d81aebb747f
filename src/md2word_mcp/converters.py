"""
Conversion engine for md2word-mcp.

Two strategies produce the .docx payload:

- PandocConverter: high-fidelity conversion through the pandoc binary
  (driven with pypandoc). Preferred whenever pandoc is installed.
- FallbackConverter: built-in markdown-it-py + BeautifulSoup + python-docx
  renderer (see docx_renderer). Always available.

ConversionEngine chooses a strategy per call. The pandoc probe result is cached
for a short TTL so a burst of requests does not spawn a probe process each.
A failed probe is not an error: the engine uses the fallback.
"""

import threading
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Optional, Tuple

import pypandoc

from .docx_renderer import DocxRenderer
from .errors import ConversionError
from .logging_config import get_logger

logger = get_logger(__name__)


class Converter(ABC):
    """Strategy interface: write ``content`` as a .docx file at ``output_path``."""

    name = "converter"

    def is_available(self) -> bool:
        return True

    @abstractmethod
    def convert(self, content: str, output_path: Path) -> None:
        ...


class PandocConverter(Converter):
    name = "pandoc"

    def is_available(self) -> bool:
        try:
            version = pypandoc.get_pandoc_version()
        except (OSError, RuntimeError) as e:
            logger.warning("pandoc_unavailable", error=str(e))
            return False
        logger.debug("pandoc_available", version=version)
        return True

    def convert(self, content: str, output_path: Path) -> None:
        pypandoc.convert_text(
            content,
            "docx",
            format="markdown",
            outputfile=str(output_path),
        )


class FallbackConverter(Converter):
    name = "builtin"

    def __init__(self, renderer: Optional[DocxRenderer] = None):
        self.renderer = renderer or DocxRenderer()

    def convert(self, content: str, output_path: Path) -> None:
        self.renderer.render_to_file(content, output_path)


class ConversionEngine:
    """
    Converts Markdown to a .docx file in the downloads directory.

    Usage:
        engine = ConversionEngine(Path("downloads"))
        path, size = engine.convert("# Title", "Report_abc123.docx")
    """

    def __init__(
        self,
        output_dir: Path,
        primary: Optional[Converter] = None,
        fallback: Optional[Converter] = None,
        probe_ttl_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            output_dir: Directory the produced documents are written to
            primary: Preferred converter (default: PandocConverter)
            fallback: Converter used when the primary is unavailable
                (default: FallbackConverter)
            probe_ttl_seconds: How long a primary availability probe is reused
            clock: Monotonic time source; injectable for tests
        """
        self.output_dir = Path(output_dir)
        self.primary = primary if primary is not None else PandocConverter()
        self.fallback = fallback if fallback is not None else FallbackConverter()
        self.probe_ttl_seconds = probe_ttl_seconds
        self._clock = clock
        self._probe_lock = threading.Lock()
        self._probe_result: Optional[bool] = None
        self._probe_time = 0.0

    def primary_available(self) -> bool:
        """Probe the primary converter, reusing a recent result."""
        with self._probe_lock:
            now = self._clock()
            if (
                self._probe_result is not None
                and now - self._probe_time < self.probe_ttl_seconds
            ):
                return self._probe_result

        try:
            available = self.primary.is_available()
        except Exception as e:
            logger.warning("converter_probe_failed", converter=self.primary.name, error=str(e))
            available = False

        with self._probe_lock:
            self._probe_result = available
            self._probe_time = self._clock()
        return available

    def select(self) -> Converter:
        return self.primary if self.primary_available() else self.fallback

    def convert(self, content: str, desired_filename: str) -> Tuple[Path, int]:
        """
        Convert Markdown content into a .docx file.

        Args:
            content: Markdown source
            desired_filename: File name for the output (no directories)

        Returns:
            Tuple of (storage path, size in bytes)

        Raises:
            ConversionError: If the selected converter fails; the cause is chained
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        output_path = self.output_dir / Path(desired_filename).name
        converter = self.select()

        logger.info("conversion_started", converter=converter.name, filename=output_path.name)
        try:
            converter.convert(content, output_path)
            size = output_path.stat().st_size
        except Exception as e:
            try:
                output_path.unlink(missing_ok=True)
            except OSError as cleanup_error:
                logger.warning(
                    "conversion_cleanup_failed",
                    path=str(output_path),
                    error=str(cleanup_error),
                )
            logger.error(
                "conversion_failed",
                converter=converter.name,
                filename=output_path.name,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise ConversionError(f"{converter.name} conversion failed: {e}") from e

        logger.info(
            "conversion_completed",
            converter=converter.name,
            filename=output_path.name,
            size_bytes=size,
        )
        return output_path, size
