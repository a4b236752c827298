import logging

from bs4 import BeautifulSoup

from ..models.schemas import PageContext

logger = logging.getLogger(__name__)

UNSCANNABLE = "Unable to scan page content."


class PageScanner:
    """Extracts readable text from the page the visitor is looking at"""

    def scan(self, path: str, html: str) -> PageContext:
        """Headings, paragraphs of <main> and navigation labels, flattened to text"""
        try:
            soup = BeautifulSoup(html or "", "html.parser")
            title = soup.title.get_text(strip=True) if soup.title else ""

            blocks = []
            for heading in soup.find_all(["h1", "h2", "h3"]):
                blocks.append(f"## {heading.get_text(strip=True)}")

            main = soup.find("main")
            if main is not None:
                for paragraph in main.find_all("p"):
                    blocks.append(paragraph.get_text(strip=True))

            for link in soup.select("nav a"):
                blocks.append(f"Link: {link.get_text(strip=True)}")

            return PageContext(path=path, title=title, extractedText="\n\n".join(blocks))
        except Exception as e:
            logger.error(f"Error scanning page {path}: {e}")
            return PageContext(path=path, title="", extractedText=UNSCANNABLE)


def format_page_context(page: PageContext) -> str:
    return f"Current page: {page.title}\nURL path: {page.path}\n\nPage content:\n{page.extractedText}".strip()
