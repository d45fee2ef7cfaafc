from __future__ import annotations

from bs4 import BeautifulSoup


def html_to_text(html: str | None) -> str | None:
    if not html:
        return None
    if "<" not in html:
        return html.strip() or None
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    text = soup.get_text(separator="\n")
    cleaned = "\n".join([line.strip() for line in text.splitlines() if line.strip()])
    return cleaned if cleaned else None
