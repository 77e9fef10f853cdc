import logging

import pytest

from wpm import WpmAccumulator, WpmReport, log_report


def test_empty_report():
    report = WpmAccumulator().report(60.0, 0.1)
    assert report == WpmReport(None, None, None, None)


def test_report_nominal_speed():
    acc = WpmAccumulator()
    # 20 WPM is 60 ms per TU, 10 slices per TU at 0.1
    acc.add_char(9, 90)
    acc.add_char_space(30)
    acc.add_char(5, 50)
    acc.add_word_space(70)
    acc.add_char(1, 10)
    report = acc.report(60.0, 0.1)
    assert report.char_wpm == pytest.approx(20.0)
    assert report.char_space_expansion == pytest.approx(1.0)
    assert report.word_space_expansion == pytest.approx(1.0)
    assert report.effective_wpm == pytest.approx(20.0)


def test_report_stretched_spaces():
    acc = WpmAccumulator()
    acc.add_char(5, 50)
    acc.add_char_space(60)
    acc.add_char(5, 50)
    report = acc.report(60.0, 0.1)
    assert report.char_space_expansion == pytest.approx(2.0)
    assert report.word_space_expansion is None
    assert report.effective_wpm < report.char_wpm


def test_log_report(caplog):
    with caplog.at_level(logging.INFO, logger="wpm"):
        log_report(WpmReport(20.0, 1.0, None, 19.5))
    assert "within-characters WPM rating: 20.0" in caplog.text
    assert "effective WPM: 19.5" in caplog.text
    assert "inter-word" not in caplog.text
