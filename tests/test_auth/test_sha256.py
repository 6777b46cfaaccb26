"""Tests for the standalone SHA-256 implementation."""

from __future__ import annotations

import hashlib

import pytest

from opennow.auth.sha256 import sha256, sha256_hex


class TestKnownVectors:
    def test_empty_string(self) -> None:
        assert sha256_hex(b"") == (
            "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
        )

    def test_abc(self) -> None:
        assert sha256_hex(b"abc") == (
            "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
        )

    def test_two_block_message(self) -> None:
        msg = b"abcdbcdecdefdefgefghfghighijhijkijkljklmklmnlmnomnopnopq"
        assert sha256_hex(msg) == (
            "248d6a61d20638b8e5c026930c3e6039a33ce45964ff2167f6ecedd419db06c1"
        )

    def test_digest_is_32_bytes(self) -> None:
        assert len(sha256(b"opennow")) == 32


class TestAgainstHashlib:
    @pytest.mark.parametrize("length", [0, 1, 55, 56, 57, 63, 64, 65, 119, 120, 128, 1000])
    def test_padding_boundaries(self, length: int) -> None:
        """Lengths around the 56-mod-64 padding boundary match hashlib."""
        data = bytes(i % 251 for i in range(length))
        assert sha256(data) == hashlib.sha256(data).digest()

    def test_str_is_utf8_encoded(self) -> None:
        text = "grüße:nonce"
        assert sha256(text) == hashlib.sha256(text.encode("utf-8")).digest()

    def test_deterministic(self) -> None:
        assert sha256(b"same input") == sha256(b"same input")
