"""
Morse code prefix tree.

Nodes live in an arena and refer to their children by integer id. The tree
is seeded with the standard alphabet by `build_standard_morse_tree()` and
grows on demand: walking to a code that has no node yet creates a
placeholder whose text is the bracketed code.
"""

import threading
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

ROOT = 0

# (text, code); None marks an intermediate node that only exists so that
# longer codes can be reached
STANDARD_CODES: List[Tuple[Optional[str], str]] = [
    ("e", "."), ("t", "-"),
    ("i", ".."), ("a", ".-"), ("n", "-."), ("m", "--"),
    ("s", "..."), ("u", "..-"), ("r", ".-."), ("w", ".--"),
    ("d", "-.."), ("k", "-.-"), ("g", "--."), ("o", "---"),
    ("h", "...."), ("v", "...-"), ("f", "..-."), ("ü", "..--"),
    ("l", ".-.."), ("ä", ".-.-"), ("p", ".--."), ("j", ".---"),
    ("b", "-..."), ("x", "-..-"), ("c", "-.-."), ("y", "-.--"),
    ("z", "--.."), ("q", "--.-"), ("ö", "---."), ("ch", "----"),
    ("é", "..-.."), ("å", ".--.-"),
    ("0", "-----"), ("1", ".----"), ("2", "..---"), ("3", "...--"), ("4", "....-"),
    ("5", "....."), ("6", "-...."), ("7", "--..."), ("8", "---.."), ("9", "----."),
    ("/", "-..-."), ("+", ".-.-."), (".", ".-.-.-"),
    (None, "--..-"), (",", "--..--"),
    ("=", "-...-"), ("-", "-....-"),
    (":", "---..."),
    (None, "-.-.-"), (";", "-.-.-."),
    ("(", "-.--."), (")", "-.--.-"),
    ("'", ".----."),
    (None, "..--."), ("?", "..--.."),
    (None, ".-..-"), ("\"", ".-..-."),
    ("<AS>", ".-..."),
    (None, "-...-."), ("<BK>", "-...-.-"),
    (None, "...-."), ("<SK>", "...-.-"),
    (None, "...-.."), ("$", "...-..-"),
    (None, "-.-.."), (None, "-.-..-"), (None, "-.-..-."), ("<CL>", "-.-..-.."),
    (None, "...---"), (None, "...---."), (None, "...---.."), ("<SOS>", "...---..."),
]


def nominal_tus(code: str) -> int:
    """
    Nominal length of a character in TUs, counting the gap after every
    element but the last: dot 1, dash 3, inter-element gap 1.
    """
    total = 0
    for j, symbol in enumerate(code):
        last = j == len(code) - 1
        if symbol == ".":
            total += 1 if last else 2
        elif symbol == "-":
            total += 3 if last else 4
    return total


def placeholder_text(code: str) -> str:
    return f"[{code}]"


@dataclass
class Node:
    code: str
    text: str
    n_tus: int
    dot: Optional[int] = None
    dash: Optional[int] = None


class MorseTree:
    def __init__(self):
        self.nodes: List[Node] = [Node("", "", 0)]
        self._lock = threading.Lock()

    def __len__(self):
        return len(self.nodes)

    def node(self, node_id: int) -> Node:
        return self.nodes[node_id]

    def text(self, node_id: int) -> str:
        return self.nodes[node_id].text

    def n_tus(self, node_id: int) -> int:
        return self.nodes[node_id].n_tus

    def code(self, node_id: int) -> str:
        return self.nodes[node_id].code

    def _append(self, code: str, text: Optional[str]) -> int:
        self.nodes.append(Node(code, placeholder_text(code) if text is None else text, nominal_tus(code)))
        return len(self.nodes) - 1

    def add(self, text: Optional[str], code: str) -> int:
        """
        Register a seeded code. Every prefix must already exist, and the
        code itself must not.
        """
        if not code:
            raise ValueError("empty code")
        parent = ROOT
        for symbol in code[:-1]:
            child = self._slot(parent, symbol)
            if child is None:
                raise ValueError(f"missing prefix for code: {code}")
            parent = child
        with self._lock:
            if self._slot(parent, code[-1]) is not None:
                raise ValueError(f"duplicate node: {code}")
            new_id = self._append(code, text)
            self._link(parent, code[-1], new_id)
        return new_id

    def _slot(self, node_id: int, symbol: str) -> Optional[int]:
        node = self.nodes[node_id]
        if symbol == ".":
            return node.dot
        if symbol == "-":
            return node.dash
        raise ValueError(f"not a Morse symbol: {symbol!r}")

    def _link(self, node_id: int, symbol: str, child_id: int):
        if symbol == ".":
            self.nodes[node_id].dot = child_id
        else:
            self.nodes[node_id].dash = child_id

    def child(self, node_id: int, symbol: str) -> int:
        """Return the dot or dash child, creating a placeholder if absent."""
        existing = self._slot(node_id, symbol)
        if existing is not None:
            return existing
        with self._lock:
            existing = self._slot(node_id, symbol)
            if existing is not None:
                return existing
            new_id = self._append(self.nodes[node_id].code + symbol, None)
            self._link(node_id, symbol, new_id)
            return new_id

    def walk(self, code: str, start: int = ROOT) -> int:
        node_id = start
        for symbol in code:
            node_id = self.child(node_id, symbol)
        return node_id

    def lookup(self, code: str) -> str:
        return self.text(self.walk(code))

    def codes(self) -> Dict[str, str]:
        """Map of text to code for every node that has a real character."""
        return {n.text: n.code for n in self.nodes[1:] if n.text != placeholder_text(n.code)}


def build_standard_morse_tree() -> MorseTree:
    tree = MorseTree()
    for text, code in STANDARD_CODES:
        tree.add(text, code)
    return tree
