from __future__ import annotations

import typing as typ
from pathlib import Path

import pytest

from pagesmith import cli
from pagesmith.config import SiteConfigError
from pagesmith.errors import GenerationError


def _run(args: list[str]) -> int | None:
    """Invoke the CLI and return its exit status."""
    try:
        cli.app(args)
    except SystemExit as exc:
        return typ.cast("int | None", exc.code)
    return 0


@pytest.fixture
def site_cls(mocker: typ.Any) -> typ.Any:
    mocker.patch("pagesmith.cli.configure_logging")
    site_cls = mocker.patch("pagesmith.cli.Site")
    site_cls.return_value.generate = mocker.AsyncMock()
    return site_cls


def test_build_generates_site(site_cls: typ.Any, tmp_path: Path) -> None:
    code = _run(
        [
            "build",
            str(tmp_path),
            "--base-url",
            "/docs",
            "--concurrency",
            "2",
        ]
    )

    assert code in (0, None)
    site_cls.assert_called_once_with(
        tmp_path,
        None,
        one_page=None,
        force_reload=False,
        base_url="/docs",
        concurrency=2,
    )
    site_cls.return_value.generate.assert_awaited_once()


def test_build_passes_landing_page(site_cls: typ.Any, tmp_path: Path) -> None:
    _run(["build", str(tmp_path), "--one-page", "index.md"])

    assert site_cls.call_args.kwargs["one_page"] == "index.md"


@pytest.mark.parametrize(
    "error",
    [
        SiteConfigError("Site configuration not found"),
        GenerationError("Error while generating index.md", path=Path("index.md")),
    ],
)
def test_build_exits_non_zero_on_failure(
    site_cls: typ.Any, tmp_path: Path, error: Exception
) -> None:
    site_cls.return_value.generate.side_effect = error

    assert _run(["build", str(tmp_path)]) == 1


def test_watch_serves_site(site_cls: typ.Any, mocker: typ.Any, tmp_path: Path) -> None:
    serve = mocker.patch("pagesmith.cli.serve", new=mocker.AsyncMock())

    code = _run(["watch", str(tmp_path), "--force-reload"])

    assert code in (0, None)
    assert site_cls.call_args.kwargs["force_reload"] is True
    serve.assert_awaited_once_with(site_cls.return_value)


def test_watch_stops_quietly_on_interrupt(
    site_cls: typ.Any, mocker: typ.Any, tmp_path: Path
) -> None:
    mocker.patch("pagesmith.cli.serve", new=mocker.AsyncMock())
    mocker.patch("pagesmith.cli.asyncio.run", side_effect=KeyboardInterrupt)

    assert _run(["watch", str(tmp_path)]) in (0, None)
