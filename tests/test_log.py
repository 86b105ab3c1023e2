from __future__ import annotations

import logging

import pytest

from docbridge import collect_losses, dump
from docbridge.log import ClickEchoHandler, Loss, configure_logging, log_loss_if_any
from docbridge.model import Article, Heading, Paragraph


@pytest.mark.asyncio
async def test_supported_fields_report_no_losses() -> None:
    article = Article(title="T", content=[Paragraph(content=["x"])])

    with collect_losses() as report:
        await dump(article, "html")

    assert not report
    assert len(report) == 0


@pytest.mark.asyncio
async def test_adding_an_unsupported_field_adds_one_loss() -> None:
    article = Article(title="T", name="short", content=[Paragraph(content=["x"])])

    with collect_losses() as report:
        await dump(article, "html")

    assert report.entries == [Loss("html", "encode", "Article", "name")]
    assert report.properties("Article") == {"name"}


def test_losses_are_logged_as_warnings(caplog: pytest.LogCaptureFixture) -> None:
    heading = Heading(depth=1, content=["x"], meta={"k": 1})

    with caplog.at_level(logging.WARNING, logger="docbridge"):
        log_loss_if_any("md", "encode", heading, {"meta": heading.meta})

    assert "Lost properties when encoding to md Heading: meta" in caplog.text


def test_nothing_is_logged_for_empty_losses(caplog: pytest.LogCaptureFixture) -> None:
    with collect_losses() as report:
        log_loss_if_any("md", "decode", Article(), {})
        log_loss_if_any("md", "decode", Article(), None)

    assert not report
    assert caplog.records == []


def test_reports_do_not_leak_outside_the_block() -> None:
    with collect_losses() as outer:
        with collect_losses() as inner:
            log_loss_if_any("csv", "encode", Article(), ["title"])
        log_loss_if_any("csv", "encode", Article(), ["name"])

    assert [entry.property for entry in inner.entries] == ["title"]
    assert [entry.property for entry in outer.entries] == ["name"]


def test_configure_logging_installs_click_handler() -> None:
    configure_logging("debug")

    package_logger = logging.getLogger("docbridge")
    assert package_logger.level == logging.DEBUG
    assert not package_logger.propagate
    assert len(package_logger.handlers) == 1
    assert isinstance(package_logger.handlers[0], ClickEchoHandler)
