"""Tests for join code generation."""

import unittest
from collections import Counter

from bandsync.constants import JOIN_CODE_ALPHABET, JOIN_CODE_LENGTH
from bandsync.errors import CodeGenerationExhausted, ValidationError
from bandsync.group.codes import generate_code, is_valid_code, normalize_code

from tests.helpers import Band, scripted_chooser


class JoinCodeTestCase(unittest.TestCase):
    """Tests for the pure code helpers."""

    def test_generated_codes_are_six_uppercase_alphanumerics(self):
        for _ in range(200):
            code = generate_code()
            self.assertEqual(len(code), JOIN_CODE_LENGTH)
            self.assertTrue(is_valid_code(code))
            self.assertEqual(code, code.upper())

    def test_every_character_is_reachable(self):
        counts = Counter("".join(generate_code() for _ in range(2000)))
        self.assertEqual(set(counts), set(JOIN_CODE_ALPHABET))

    def test_normalize_trims_and_uppercases(self):
        self.assertEqual(normalize_code("  ab12cd "), "AB12CD")

    def test_normalize_rejects_malformed_codes(self):
        for raw in ("", None, "AB12C", "AB12CDE", "AB-2CD", "ab12cé"):
            with self.assertRaises(ValidationError):
                normalize_code(raw)


class UniqueCodeTestCase(unittest.IsolatedAsyncioTestCase):
    """Tests for collision handling when a group draws its code."""

    async def test_collision_is_redrawn(self):
        band = Band()
        alice = await band.register("alice")
        first = await alice.groups.create_group("First")

        carol = await band.register("carol")
        carol.groups._choose = scripted_chooser([first.code, "ZZZZZZ"])
        group = await carol.groups.create_group("Second")
        self.assertEqual(group.code, "ZZZZZZ")

    async def test_exhausted_attempts_raise(self):
        band = Band()
        alice = await band.register("alice")
        alice.groups._choose = scripted_chooser(["AAAAAA"])
        await alice.groups.create_group("First")

        carol = await band.register("carol")
        carol.groups._max_code_attempts = 3
        carol.groups._choose = scripted_chooser(["AAAAAA"] * 3)
        with self.assertRaises(CodeGenerationExhausted):
            await carol.groups.create_group("Second")
        self.assertIsNone(carol.session.profile.group_id)


if __name__ == "__main__":
    unittest.main()
