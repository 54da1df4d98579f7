import pytest

from procinfo.cpuinfo import CPUInfo, cpu_info, parse_cpu_info
from procinfo.fs import FS

TEMPLATE = """processor\t: {n}
vendor_id\t: GenuineIntel
cpu family\t: 6
model\t\t: 142
model name\t: Intel(R) Core(TM) i7-8650U CPU @ 1.90GHz
stepping\t: 10
microcode\t: 0xb4
cpu MHz\t\t: 799.998
cache size\t: 8192 KB
physical id\t: 0
siblings\t: 8
core id\t\t: {core}
cpu cores\t: 4
apicid\t\t: {n}
initial apicid\t: {n}
fpu\t\t: yes
fpu_exception\t: yes
cpuid level\t: 22
wp\t\t: yes
flags\t\t: fpu vme de pse tsc
bugs\t\t: cpu_meltdown spectre_v1
bogomips\t: 4224.00
clflush size\t: 64
cache_alignment\t: 64
address sizes\t: 39 bits physical, 48 bits virtual
power management:

"""


def _fixture_text():
    return "".join(TEMPLATE.format(n=n, core=n % 4) for n in range(8))


@pytest.fixture
def proc_fs(tmp_path):
    (tmp_path / "cpuinfo").write_text(_fixture_text())
    return FS(str(tmp_path))


def test_cpu_info_from_fs(proc_fs):
    cpus = cpu_info(proc_fs)
    assert len(cpus) == 8
    assert cpus[7].processor == 7
    assert cpus[0].vendor_id == "GenuineIntel"
    assert cpus[1].cpu_family == "6"
    assert cpus[2].model == "142"
    assert cpus[3].model_name == "Intel(R) Core(TM) i7-8650U CPU @ 1.90GHz"
    assert cpus[4].siblings == 8
    assert cpus[5].core_id == "1"
    assert cpus[6].cpu_cores == 4
    assert cpus[7].flags[1] == "vme"


def test_numeric_and_list_fields(proc_fs):
    cpu = cpu_info(proc_fs)[0]
    assert cpu.cpu_mhz == pytest.approx(799.998)
    assert cpu.bogomips == pytest.approx(4224.0)
    assert cpu.cpuid_level == 22
    assert cpu.clflush_size == 64
    assert cpu.cache_alignment == 64
    assert cpu.bugs == ["cpu_meltdown", "spectre_v1"]
    assert cpu.microcode == "0xb4"
    assert cpu.power_management == ""


def test_prefixed_integers_are_accepted():
    cpus = parse_cpu_info(b"processor\t: 0x3\ncpuid level\t: 0x16\n")
    assert cpus == [CPUInfo(processor=3, cpuid_level=22)]


def test_empty_input():
    assert parse_cpu_info("") == []


def test_invalid_processor_number():
    with pytest.raises(ValueError):
        parse_cpu_info("processor\t: abc\n")


def test_invalid_mhz():
    with pytest.raises(ValueError):
        parse_cpu_info("processor\t: 0\ncpu MHz\t\t: fast\n")


def test_siblings_out_of_range():
    with pytest.raises(ValueError):
        parse_cpu_info("processor\t: 0\nsiblings\t: 4294967296\n")