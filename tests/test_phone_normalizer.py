"""
電話番号正規化のテスト
"""

import pytest

from app.services.phone_normalizer import normalize_phone_number


class TestNormalizePhoneNumber:
    """normalize_phone_number のテスト"""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("9876543210", "919876543210"),
            ("09876543210", "919876543210"),
            ("919876543210", "919876543210"),
            ("+91 98765 43210", "919876543210"),
            ("098-7654-3210", "919876543210"),
            ("(+91) 98765-43210", "919876543210"),
        ],
    )
    def test_valid_formats(self, raw, expected):
        """10桁・先頭0の11桁・91始まりの12桁は正規化される"""
        assert normalize_phone_number(raw) == expected

    @pytest.mark.parametrize(
        "raw",
        [
            "12345",
            "",
            "abc",
            "19876543210",
            "929876543210",
            "0919876543210",
            "98765432101234",
            "९८७६५४३२१०",
            "٩٨٧٦٥٤٣٢١٠",
            "+९१ ९८७६५ ४३२१०",
        ],
    )
    def test_invalid_formats(self, raw):
        """桁数・先頭が条件に合わない番号、ASCII以外の数字は None"""
        assert normalize_phone_number(raw) is None

    @pytest.mark.parametrize("raw", [None, 9876543210, ["9876543210"]])
    def test_non_string_input(self, raw):
        """文字列以外は None"""
        assert normalize_phone_number(raw) is None

    def test_idempotent(self):
        """正規化済みの番号を再度正規化しても変わらない"""
        once = normalize_phone_number("09876543210")
        assert normalize_phone_number(once) == once

    def test_mixed_scripts_keep_ascii_digits_only(self):
        """ASCII以外の数字が混在しても ASCII の数字だけで判定する"""
        assert normalize_phone_number("98765४43210") == "919876543210"
