import hashlib

import pytest

from btcodec import marshal
from btcodec.torrent import File, Info, Metainfo

PIECES = b"\x01" * 20
# keys in plain byte order, the way most clients write them
RAW_INFO = b"d6:lengthi12e4:name5:a.txt12:piece lengthi16384e6:pieces20:" + PIECES + b"e"


def sample_torrent() -> bytes:
    return b"d8:announce" + marshal("http://tracker/announce") + b"4:info" + RAW_INFO + b"e"


def multi_file_meta() -> Metainfo:
    info = Info(
        files=[File(3, path=["a", "b.txt"]), File(4, path=["c"])],
        name="dir",
        piece_length=4,
        pieces=b"\x00" * 40,
    )
    return Metainfo(
        announce="http://t",
        info=info,
        announce_list=[["http://t"], ["udp://u"]],
        comment="test",
    )


def test_metainfo_from_bytes():
    meta = Metainfo.from_bytes(sample_torrent())
    print("Parsed Metainfo:", meta)

    assert meta.announce == "http://tracker/announce"
    assert meta.info.name == "a.txt"
    assert meta.info.length == 12
    assert meta.info.piece_length == 16384
    assert meta.info.piece_hashes == [PIECES]
    assert not meta.info.is_multi_file
    assert meta.info.total_length == 12
    assert meta.info.file_paths() == [("a.txt", 12)]
    assert meta.announce_urls == ["http://tracker/announce"]


def test_info_hash_uses_bytes_as_read():
    meta = Metainfo.from_bytes(sample_torrent())
    assert meta.raw_info == RAW_INFO
    assert meta.info_hash == hashlib.sha1(RAW_INFO).digest()


def test_info_hash_of_built_metainfo():
    meta = multi_file_meta()
    assert meta.info_hash == hashlib.sha1(marshal(meta.info)).digest()


def test_info_hash_after_modifying_loaded_info():
    meta = Metainfo.from_bytes(sample_torrent())
    meta.info.name = "b.txt"
    assert meta.info_hash == hashlib.sha1(RAW_INFO).digest()

    meta.raw_info = b""
    assert meta.info_hash == hashlib.sha1(marshal(meta.info)).digest()


def test_multi_file_round_trip():
    meta = multi_file_meta()
    parsed = Metainfo.from_bytes(meta.to_bytes())

    assert parsed == meta
    assert parsed.info_hash == meta.info_hash
    assert parsed.info.is_multi_file
    assert parsed.info.total_length == 7
    assert parsed.info.num_pieces == 2
    assert parsed.info.last_piece_length == 3
    assert parsed.info.file_paths() == [("dir/a/b.txt", 3), ("dir/c", 4)]
    assert parsed.announce_urls == ["http://t", "udp://u"]


def test_optional_keys_are_omitted():
    data = Metainfo(announce="http://t", info=Info(name="x", piece_length=1)).to_bytes()
    for key in (b"announce-list", b"creation date", b"comment", b"created by",
                b"encoding", b"private", b"md5sum", b"files"):
        assert key not in data


def test_missing_info_is_rejected():
    with pytest.raises(ValueError):
        Metainfo.from_bytes(b"d8:announce1:xe")


def test_bad_pieces_length():
    with pytest.raises(ValueError):
        Info(pieces=b"123").piece_hashes


def test_metainfo_load(tmp_path):
    path = tmp_path / "sample.torrent"
    path.write_bytes(sample_torrent())

    meta = Metainfo.load(path)
    assert meta.info.name == "a.txt"
    assert meta.info_hash.hex() == hashlib.sha1(RAW_INFO).hexdigest()
