import pytest

from metrics import calculate_cer, edit_distance, tokenize


def test_edit_distance():
    assert edit_distance(list("KM"), list("KM")) == 0
    assert edit_distance(list("CQ"), list("CX")) == 1
    assert edit_distance(list("CQ"), list("C")) == 1
    assert edit_distance(list("C"), list("CQ")) == 1
    assert edit_distance([], list("CQ")) == 2
    assert edit_distance(list("kitten"), list("sitting")) == 3


def test_tokenize_keeps_prosigns_whole():
    assert tokenize("a<SK>[.-.-.-.-]???b") == ["a", "<SK>", "[.-.-.-.-]", "???", "b"]


def test_calculate_cer():
    assert calculate_cer("paris", "paris") == 0.0
    assert calculate_cer("paris", "pari") == pytest.approx(0.2)
    assert calculate_cer("PARIS", "paris") == 0.0
    # spaces are not counted
    assert calculate_cer("cq de", "cqde") == 0.0


def test_calculate_cer_prosign_is_one_character():
    assert calculate_cer("tu <SK>", "tu") == pytest.approx(1 / 3)
    assert calculate_cer("<SK>", "<SK>") == 0.0


def test_calculate_cer_empty_reference():
    assert calculate_cer("", "") == 0.0
    assert calculate_cer("", "e") == 1.0
