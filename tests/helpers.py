"""Test data and doubles shared across test modules."""

import io

from PIL import Image


SIMPLE_SVG = '<svg fill="black"><path stroke="black"/></svg>'

NAMESPACED_SVG = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 24 24" fill="red">'
    '<path d="M0 0h24v24H0z" fill="red"/>'
    '<path d="M1 1h2v2H1z"/>'
    '<circle cx="12" cy="12" r="4" style="stroke: blue; stroke-width: 2"/>'
    '<g fill="green"><rect width="2" height="2"/></g>'
    '</svg>'
)


def make_png(color=(255, 0, 0, 255), size=(10, 10)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGBA", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


class AsyncBlob:
    """Blob-like object whose content is only available through an async read."""

    def __init__(self, content):
        self.content = content
        self.reads = 0

    async def read(self):
        self.reads += 1
        return self.content


LATIN1_SVG = (
    '<?xml version="1.0" encoding="ISO-8859-1"?>'
    '<svg><title>café</title><path fill="black"/></svg>'
)
