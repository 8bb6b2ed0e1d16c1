import io
from unittest import mock

import pytest

from fcshim import cpu_template
from fcshim.cpu_template import find_first_vendor_id, support_cpu_template


@pytest.mark.parametrize(
    "text, vendor",
    [
        ("vendor_id : GenuineIntel", "GenuineIntel"),
        ("vendor_id : AuthenticAMD", "AuthenticAMD"),
        ("", ""),
    ],
)
def test_find_first_vendor_id(text, vendor):
    assert find_first_vendor_id(io.StringIO(text)) == vendor


def test_find_first_vendor_id_takes_first_match():
    text = "processor\t: 0\nvendor_id\t: GenuineIntel\nvendor_id\t: AuthenticAMD\n"
    assert find_first_vendor_id(io.StringIO(text)) == "GenuineIntel"


@pytest.fixture
def fresh_cache():
    support_cpu_template.cache_clear()
    yield
    support_cpu_template.cache_clear()


def test_support_cpu_template_non_amd64(fresh_cache):
    with mock.patch.object(cpu_template.platform, "machine", return_value="aarch64"):
        assert support_cpu_template() is False


@pytest.mark.parametrize(
    "cpuinfo, expected",
    [
        ("processor\t: 0\nvendor_id\t: GenuineIntel\n", True),
        ("processor\t: 0\nvendor_id\t: AuthenticAMD\n", False),
    ],
)
def test_support_cpu_template_amd64(fresh_cache, cpuinfo, expected):
    with mock.patch.object(cpu_template.platform, "machine", return_value="x86_64"), \
            mock.patch("fcshim.cpu_template.open", mock.mock_open(read_data=cpuinfo), create=True):
        assert support_cpu_template() is expected