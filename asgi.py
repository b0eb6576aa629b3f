"""
asgi.py -- Application assembly for the gallery service.

This is the ONLY file that imports from both api/ and web/. It joins the two
independent layers into a single ASGI app without coupling them to each other.
api/main.py knows nothing about web/; web/routes.py knows nothing about api/.

Run with:  uvicorn asgi:app --reload
           python main.py serve
"""

from api.main import app
from web.routes import router as web_router

# Mount the SPA router here, not in api/main.py, and after every API route:
# its catch-all path would otherwise shadow them.
app.include_router(web_router, tags=["Web UI"])
