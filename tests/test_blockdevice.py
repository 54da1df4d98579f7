import pytest

from procinfo.blockdevice import BlockDeviceFS, Diskstats, IOStats

DISKSTATS = """\
   1       0 ram0 0 0 0 0 0 0 0 0 0 0 0
   1       1 ram1 0 0 0 0 0 0 0 0 0 0 0
   8       0 sda 25354637 34367663 1003346126 18492372 28444756 11134226 505697032 63877960 0 9653308 82621804
   8      16 sdb 326552 841 9657779 84 41822 2895 1972905 5007 0 60730 67070 68851 0 1925173784 11130
   8      32 sdc 1 2 3
"""

DM0_STAT = (
    "6447303        0 710266738  1036788        0        0        0"
    "        0        0   711480  6088971\n"
)
SDA_STAT = (
    " 9652963   396792 759304206   412943  8422549  6731723 286915323"
    " 13947418        0  5658367 19174573        1        2        3       12\n"
)


@pytest.fixture
def block_fs(tmp_path):
    proc = tmp_path / "proc"
    proc.mkdir()
    (proc / "diskstats").write_text(DISKSTATS)
    block = tmp_path / "sys" / "block"
    (block / "dm-0").mkdir(parents=True)
    (block / "sda").mkdir()
    (block / "dm-0" / "stat").write_text(DM0_STAT)
    (block / "sda" / "stat").write_text(SDA_STAT)
    (block / "not-a-device").write_text("")
    return BlockDeviceFS(str(proc), str(tmp_path / "sys"))


def test_diskstats(block_fs):
    stats = block_fs.proc_diskstats()
    assert len(stats) == 4
    assert stats[0].device_name == "ram0"
    assert stats[1].io_stats_count == 14
    assert stats[2].write_ios == 28444756
    assert stats[3].discard_ticks == 11130
    assert stats[3].io_stats_count == 18


def test_diskstats_full_entry(block_fs):
    sda = block_fs.proc_diskstats()[2]
    assert sda == Diskstats(
        major_number=8,
        minor_number=0,
        device_name="sda",
        read_ios=25354637,
        read_merges=34367663,
        read_sectors=1003346126,
        read_ticks=18492372,
        write_ios=28444756,
        write_merges=11134226,
        write_sectors=505697032,
        write_ticks=63877960,
        ios_in_progress=0,
        ios_total_ticks=9653308,
        weighted_io_ticks=82621804,
        io_stats_count=14,
    )


def test_diskstats_bad_value(tmp_path):
    proc = tmp_path / "proc"
    proc.mkdir()
    (proc / "diskstats").write_text("8 0 sda 1 x 3\n")
    fs = BlockDeviceFS(str(proc), str(tmp_path))
    with pytest.raises(ValueError):
        fs.proc_diskstats()


def test_block_devices(block_fs):
    assert block_fs.sys_block_devices() == ["dm-0", "sda"]


def test_block_device_stat(block_fs):
    dm0, count = block_fs.sys_block_device_stat("dm-0")
    assert count == 11
    assert dm0.read_ios == 6447303
    assert dm0.weighted_io_ticks == 6088971
    assert dm0.discard_ticks == 0

    sda, count = block_fs.sys_block_device_stat("sda")
    assert count == 15
    assert sda.write_sectors == 286915323
    assert sda.discard_ticks == 12


def test_block_device_stat_missing(block_fs):
    with pytest.raises(FileNotFoundError):
        block_fs.sys_block_device_stat("nope")


def test_block_device_stat_bad_value(tmp_path):
    (tmp_path / "block" / "sdz").mkdir(parents=True)
    (tmp_path / "block" / "sdz" / "stat").write_text("1 2 bad\n")
    fs = BlockDeviceFS(str(tmp_path), str(tmp_path))
    with pytest.raises(ValueError):
        fs.sys_block_device_stat("sdz")


def test_iostats_defaults_zero():
    assert IOStats().read_ios == 0 and IOStats().discard_ticks == 0


def test_missing_mount_point(tmp_path):
    with pytest.raises(FileNotFoundError):
        BlockDeviceFS(str(tmp_path / "missing"), str(tmp_path))