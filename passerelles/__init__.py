"""Content backend for the Passerelles marketing site.

Stores the speaker roster and the bilingual page copy as JSON documents and
serves them, together with uploaded speaker photos, through a FastAPI app.
"""

__version__ = "0.1.0"
