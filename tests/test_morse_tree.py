import pytest

from morse_tree import (ROOT, STANDARD_CODES, MorseTree, build_standard_morse_tree, nominal_tus,
                        placeholder_text)


def test_lookup_standard_codes():
    tree = build_standard_morse_tree()
    assert tree.lookup(".-") == "a"
    assert tree.lookup("-...") == "b"
    assert tree.lookup(".----") == "1"
    assert tree.lookup("...---...") == "<SOS>"
    assert tree.lookup("...-.-") == "<SK>"


def test_lookup_every_seeded_code():
    tree = build_standard_morse_tree()
    size = len(tree)
    for text, code in STANDARD_CODES:
        expected = placeholder_text(code) if text is None else text
        assert tree.lookup(code) == expected
    assert len(tree) == size


def test_unknown_code_creates_placeholder():
    tree = build_standard_morse_tree()
    size = len(tree)
    node_id = tree.walk(".-.-.-.-")
    assert tree.text(node_id) == "[.-.-.-.-]"
    assert len(tree) == size + 2  # ".-.-.-." and ".-.-.-.-"
    # walking the same code again reuses the node
    assert tree.walk(".-.-.-.-") == node_id
    assert len(tree) == size + 2


def test_intermediate_nodes_are_placeholders():
    tree = build_standard_morse_tree()
    assert tree.lookup("--..-") == placeholder_text("--..-")
    codes = tree.codes()
    assert "[--..-]" not in codes
    assert codes["a"] == ".-"
    assert codes[","] == "--..--"


def test_nominal_tus():
    assert nominal_tus(".") == 1
    assert nominal_tus("-") == 3
    # dot, gap, dash
    assert nominal_tus(".-") == 5
    # "paris" letters: 11 + 5 + 7 + 3 + 5 TUs
    assert sum(nominal_tus(c) for c in (".--.", ".-", ".-.", "..", "...")) == 31


def test_node_tus_follow_code():
    tree = build_standard_morse_tree()
    node_id = tree.walk("-.-")
    assert tree.n_tus(node_id) == 9
    assert tree.code(node_id) == "-.-"
    assert tree.n_tus(ROOT) == 0


def test_add_rejects_duplicates_and_orphans():
    tree = build_standard_morse_tree()
    with pytest.raises(ValueError):
        tree.add("x", ".-")
    with pytest.raises(ValueError):
        tree.add("x", "")

    empty = MorseTree()
    with pytest.raises(ValueError):
        empty.add("a", ".-")


def test_bad_symbol():
    tree = build_standard_morse_tree()
    with pytest.raises(ValueError):
        tree.child(ROOT, "x")
