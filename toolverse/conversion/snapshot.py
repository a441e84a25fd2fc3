"""
Snapshot Module - renders preview HTML in headless Chrome and captures it.

The captured PNG is flattened into a one-page PDF, so fonts and selectable
text are not preserved.
"""
import asyncio
import os
import tempfile
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Optional

from bs4 import BeautifulSoup
from loguru import logger
from selenium import webdriver
from selenium.common.exceptions import TimeoutException, WebDriverException
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.chrome.service import Service
from selenium.webdriver.common.by import By
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait
from webdriver_manager.chrome import ChromeDriverManager

from toolverse.config import settings
from toolverse.conversion.images import image_to_pdf
from toolverse.conversion.preview import PREVIEW_CSS, PREVIEW_ELEMENT_ID
from toolverse.errors import DecodeError, ToolError


STAGE = "Preview snapshot"
MIN_WINDOW_HEIGHT = 200


def prepare_document(markup: str) -> str:
    """
    Make sure the markup has a preview element to capture.

    Fragments and pages without ``#preview`` get their body wrapped in one,
    along with the default preview stylesheet.
    """
    soup = BeautifulSoup(markup, 'lxml')
    if soup.find(id=PREVIEW_ELEMENT_ID) is not None:
        return str(soup)

    if soup.html is None:
        soup.append(soup.new_tag('html'))
    if soup.body is None:
        soup.html.append(soup.new_tag('body'))
    body = soup.body
    wrapper = soup.new_tag('div', id=PREVIEW_ELEMENT_ID)
    for child in list(body.contents):
        wrapper.append(child.extract())
    body.append(wrapper)

    if soup.head is None:
        head = soup.new_tag('head')
        soup.html.insert(0, head)
    style = soup.new_tag('style')
    style.string = PREVIEW_CSS
    soup.head.append(style)
    return str(soup)


class SnapshotModule:
    """
    Captures rendered HTML as PNG using a reusable headless Chrome.
    Selenium runs in a thread pool to keep the event loop free.
    """

    def __init__(self):
        self._driver: Optional[webdriver.Chrome] = None
        self.executor = ThreadPoolExecutor(max_workers=1)

    def _get_driver(self) -> webdriver.Chrome:
        """Get or create Chrome WebDriver instance (reuse for speed)"""
        if self._driver is None:
            self._driver = self._create_driver()
        return self._driver

    def _create_driver(self) -> webdriver.Chrome:
        """Create a new Chrome WebDriver instance"""
        options = Options()

        if settings.chrome_headless:
            options.add_argument("--headless=new")

        # Essential Chrome options for stability
        options.add_argument("--no-sandbox")
        options.add_argument("--disable-dev-shm-usage")
        options.add_argument("--disable-gpu")
        options.add_argument(f"--window-size={settings.snapshot_width},{MIN_WINDOW_HEIGHT}")
        options.add_argument("--hide-scrollbars")
        options.add_argument("--disable-extensions")
        options.add_argument("--log-level=3")
        options.add_experimental_option('excludeSwitches', ['enable-logging'])

        try:
            return webdriver.Chrome(options=options)
        except WebDriverException as e:
            logger.warning(f"Direct Chrome failed: {e}, trying webdriver-manager...")
            service = Service(ChromeDriverManager().install())
            return webdriver.Chrome(service=service, options=options)

    def _reset_driver(self):
        """Drop the driver after an error; quitting a dead session may fail too."""
        if self._driver:
            try:
                self._driver.quit()
            except WebDriverException as e:
                logger.debug(f"Ignoring error while quitting driver: {e}")
            self._driver = None

    def _capture_sync(self, markup: str) -> bytes:
        """Synchronous capture (runs in thread pool)"""
        fd, path = tempfile.mkstemp(suffix=".html", prefix="toolverse_preview_")
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(prepare_document(markup))

            driver = self._get_driver()
            driver.set_window_size(settings.snapshot_width, MIN_WINDOW_HEIGHT)
            driver.get(Path(path).as_uri())
            element = WebDriverWait(driver, 10).until(
                EC.presence_of_element_located((By.ID, PREVIEW_ELEMENT_ID))
            )

            # Grow the window so the element is not clipped
            height = driver.execute_script("return document.documentElement.scrollHeight")
            driver.set_window_size(settings.snapshot_width, max(int(height), MIN_WINDOW_HEIGHT))

            png = element.screenshot_as_png
            logger.info(f"Captured preview snapshot ({len(png)} bytes)")
            return png
        except (TimeoutException, WebDriverException) as e:
            logger.error(f"Preview capture failed: {e}")
            self._reset_driver()
            raise DecodeError(f"Could not render the preview: {e.msg or e}", STAGE) from e
        finally:
            os.remove(path)

    async def capture(self, markup: str) -> bytes:
        """Render markup and return a PNG of the preview element."""
        if not markup or not markup.strip():
            raise DecodeError("The preview is empty.", STAGE)
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(self.executor, self._capture_sync, markup)

    async def to_pdf(self, markup: str) -> bytes:
        """Flatten the rendered preview into a one-page PDF."""
        try:
            png = await self.capture(markup)
            loop = asyncio.get_event_loop()
            return await loop.run_in_executor(None, image_to_pdf, png)
        except ToolError:
            raise
        except Exception as e:
            logger.error(f"Preview conversion failed: {e!r}")
            raise DecodeError(f"Could not render the preview: {e}", STAGE) from e

    def shutdown(self):
        """Clean up resources"""
        self._reset_driver()
        self.executor.shutdown(wait=False)


# Global instance
snapshot = SnapshotModule()
