"""Main application entry point.

Run with ``uvicorn cardvault.main:app``.
"""

from cardvault.core.application import create_application
from cardvault.core.initialization import initialize_application

app = create_application(initialize_application())


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=app.state.settings.API_HOST, port=app.state.settings.API_PORT)
