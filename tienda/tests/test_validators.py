import unittest
from tienda.utilities.validators import (
    BicicletaRow, MascotaRow, coerce_int, is_filled, is_valid_email, is_valid_integer,
    is_valid_numeric, parse_number,
)


class TestEmail(unittest.TestCase):

    def test_valid_addresses(self):
        for email in ("a@b.co", "ana.perez@tienda.cr", "x+y@sub.domain.org"):
            self.assertTrue(is_valid_email(email), email)

    def test_invalid_addresses(self):
        for email in ("", "ana", "ana@", "@tienda.cr", "ana@tienda", "ana perez@tienda.cr", None):
            self.assertFalse(is_valid_email(email), email)


class TestNumeric(unittest.TestCase):

    def test_parse_number(self):
        self.assertEqual(parse_number(" 12.5 "), 12.5)
        self.assertEqual(parse_number(3), 3.0)
        self.assertIsNone(parse_number("abc"))
        self.assertIsNone(parse_number(""))
        self.assertIsNone(parse_number("nan"))
        self.assertIsNone(parse_number(True))

    def test_positive_required_by_default(self):
        self.assertTrue(is_valid_numeric("70", "175"))
        self.assertFalse(is_valid_numeric("0", "175"))
        self.assertFalse(is_valid_numeric("-1"))
        self.assertFalse(is_valid_numeric("70", "x"))
        self.assertFalse(is_valid_numeric())

    def test_zero_allowed_for_prices(self):
        self.assertTrue(is_valid_numeric("0", allow_zero=True))
        self.assertFalse(is_valid_numeric("-0.5", allow_zero=True))

    def test_integer(self):
        self.assertTrue(is_valid_integer("3"))
        self.assertTrue(is_valid_integer("0"))
        self.assertFalse(is_valid_integer("2.5"))
        self.assertFalse(is_valid_integer(2.5))
        self.assertFalse(is_valid_integer("-1"))

    def test_is_filled(self):
        self.assertTrue(is_filled("a", 0))
        self.assertFalse(is_filled("a", "   "))
        self.assertFalse(is_filled(None))


class TestRowModels(unittest.TestCase):

    def test_mascota_fallbacks(self):
        row = MascotaRow.model_validate({"nombre": "  ", "edad": "tres"}).model_dump()
        self.assertEqual(row, {"nombre": "Sin nombre", "edad": 0, "raza": "Sin raza"})

    def test_mascota_values_are_coerced(self):
        row = MascotaRow.model_validate({"nombre": " Firulais ", "edad": "4 años", "raza": 12.0}).model_dump()
        self.assertEqual(row, {"nombre": "Firulais", "edad": 4, "raza": "12"})

    def test_bicicleta(self):
        row = BicicletaRow.model_validate({"marca": "Trek", "precio": "350.5 USD"}).model_dump()
        self.assertEqual(row["marca"], "Trek")
        self.assertEqual(row["modelo"], "Sin modelo")
        self.assertEqual(row["precio"], 350.5)
        self.assertEqual(row["color"], "Sin color")

    def test_coerce_int(self):
        self.assertEqual(coerce_int(3.9), 3)
        self.assertEqual(coerce_int(None, 7), 7)
