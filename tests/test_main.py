from idgen import __main__ as entrypoint
from idgen.core.config import settings


def test_run_serves_app_with_configured_address(monkeypatch):
    calls = []
    monkeypatch.setattr(
        entrypoint.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs))
    )

    entrypoint.run()

    assert calls == [
        (
            "idgen.main:app",
            {
                "host": settings.HOST,
                "port": settings.PORT,
                "log_level": settings.LOG_LEVEL.lower(),
            },
        )
    ]
