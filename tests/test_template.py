from types import SimpleNamespace

import pytest

from google_sitemap.errors import ConfigurationError
from google_sitemap.sitemap.template import LocationTemplate


def test_positional_substitution():
    template = LocationTemplate("/x-[a]-[b]/", ["a", "b"])
    assert template.render({"a": "foo", "b": "bar"}) == "/x-foo-bar/"


def test_placeholder_names_are_ignored():
    # values follow the field list, not the names in brackets
    template = LocationTemplate("/x-[first]-[second]/", ["b", "a"])
    assert template.render({"a": "foo", "b": "bar"}) == "/x-bar-foo/"


def test_attribute_rows():
    template = LocationTemplate(
        "/online-[city_name]-coupons/category-[oct_name]-[oct_id]/",
        ["city_name", "oct_name", "oct_id"]
    )
    row = SimpleNamespace(city_name="toronto", oct_name="pizza", oct_id=12)
    assert template.render(row) == "/online-toronto-coupons/category-pizza-12/"


def test_values_are_not_evaluated():
    template = LocationTemplate("/p/[slug]/", ["slug"])
    value = '{${phpinfo()}}"; [other] $x'
    assert template.render({"slug": value}) == f"/p/{value}/"


def test_none_value_renders_empty():
    template = LocationTemplate("/p/[slug]/", ["slug"])
    assert template.render({"slug": None}) == "/p//"


@pytest.mark.parametrize("template,fields", [
    ("/x-[a]-[b]/", ["a"]),
    ("/x-[a]/", ["a", "b"]),
    ("/static/", ["a"]),
])
def test_count_mismatch_raises(template, fields):
    with pytest.raises(ConfigurationError):
        LocationTemplate(template, fields)


def test_empty_template_raises():
    with pytest.raises(ConfigurationError):
        LocationTemplate("", [])


def test_template_without_placeholders():
    template = LocationTemplate("/about/", [])
    assert template.placeholders == []
    assert template.render({}) == "/about/"


def test_missing_field_raises():
    template = LocationTemplate("/p/[slug]/", ["slug"])
    with pytest.raises(ConfigurationError):
        template.render({"id": 1})
    with pytest.raises(ConfigurationError):
        template.render(SimpleNamespace(id=1))
