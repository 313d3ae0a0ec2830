import uvicorn

from homemate import main


def test_run_serves_app_on_configured_host_and_port(monkeypatch):
    calls = []
    monkeypatch.setattr(uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))

    main.run()

    assert calls == [(
        "homemate.main:app",
        {
            "host": main.settings.HOST,
            "port": main.settings.PORT,
            "log_level": main.settings.LOG_LEVEL.lower(),
        },
    )]
