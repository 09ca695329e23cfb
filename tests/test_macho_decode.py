import io
import logging

from machodeps.macho import CpuType, SliceReport, decode, decode_path
from tests.utils import fat_archive, fat_archive_with_descriptors, id_dylib, load_dylib, rpath, thin_macho


def _warnings(caplog):
    return [record for record in caplog.records if record.levelno >= logging.WARNING]


class TestDecode:
    def setup_method(self) -> None:
        self.thin_data = thin_macho(
            [id_dylib("@rpath/Foo.framework/Foo"), load_dylib("/usr/lib/libSystem.B.dylib"), rpath("@loader_path")]
        )
        self.x86_64_slice = thin_macho(
            [load_dylib("/usr/lib/libc++.1.dylib")], cputype=CpuType.X86_64, cpusubtype=3, byteorder="<"
        )
        self.arm64_slice = thin_macho([load_dylib("/usr/lib/libobjc.A.dylib"), rpath("/usr/lib/swift")])

    def test_thin(self) -> None:
        assert decode(io.BytesIO(self.thin_data)) == [
            SliceReport(
                architecture_name="arm64",
                library_identity="@rpath/Foo.framework/Foo",
                dependencies=["/usr/lib/libSystem.B.dylib"],
                search_paths=["@loader_path"],
            )
        ]

    def test_fat(self) -> None:
        data = fat_archive([(CpuType.X86_64, 3, self.x86_64_slice), (CpuType.ARM64, 0, self.arm64_slice)])
        reports = decode(io.BytesIO(data))
        assert [r.architecture_name for r in reports] == ["x86_64", "arm64"]
        assert reports[0].dependencies == ["/usr/lib/libc++.1.dylib"]
        assert reports[1].dependencies == ["/usr/lib/libobjc.A.dylib"]
        assert reports[1].search_paths == ["/usr/lib/swift"]

    def test_fat_with_mixed_slice_byte_orders(self) -> None:
        big_endian_slice = thin_macho(
            [load_dylib("/usr/lib/libSystem.B.dylib", ">")], cputype=CpuType.POWERPC, is_64bit=False, byteorder=">"
        )
        data = fat_archive([(CpuType.POWERPC, 0, big_endian_slice), (CpuType.ARM64, 0, self.arm64_slice)])
        reports = decode(io.BytesIO(data))
        assert [r.architecture_name for r in reports] == ["ppc", "arm64"]
        assert reports[0].dependencies == ["/usr/lib/libSystem.B.dylib"]

    def test_malformed_slice_does_not_affect_sibling(self, caplog) -> None:
        garbage = b"\xde\xad\xbe\xef" * 16
        data = fat_archive([(CpuType.X86_64, 3, garbage), (CpuType.ARM64, 0, self.arm64_slice)])
        reports = decode(io.BytesIO(data), "Mixed")
        assert [r.architecture_name for r in reports] == ["arm64"]

        warnings = _warnings(caplog)
        assert len(warnings) == 1
        assert warnings[0].getMessage().startswith("Mixed: skipping x86_64 slice:")

    def test_slice_past_end_of_input(self, caplog) -> None:
        data = fat_archive_with_descriptors([(CpuType.ARM64, 0, 0x100000, 0x100)])
        assert decode(io.BytesIO(data)) == []
        assert len(_warnings(caplog)) == 1

    def _fat_with_slice_at_end_of_64bit_range(self) -> bytes:
        # fat_arch_64 offsets are 64-bit, far beyond what seek() accepts
        header_size = 8 + 2 * 32
        descriptors = [
            (CpuType.ARM64, 0, 0xFFFFFFFFFFFFFF00, 0x100),
            (CpuType.X86_64, 3, 0x100, len(self.x86_64_slice)),
        ]
        data = fat_archive_with_descriptors(descriptors, is_64bit_descriptors=True)
        assert len(data) == header_size
        return data + bytes(0x100 - header_size) + self.x86_64_slice

    def test_slice_offset_beyond_seekable_range(self, caplog) -> None:
        reports = decode(io.BytesIO(self._fat_with_slice_at_end_of_64bit_range()), "Huge")
        assert [r.architecture_name for r in reports] == ["x86_64"]
        assert reports[0].dependencies == ["/usr/lib/libc++.1.dylib"]

        warnings = _warnings(caplog)
        assert len(warnings) == 1
        assert warnings[0].getMessage().startswith("Huge: skipping arm64 slice:")

    def test_slice_offset_beyond_seekable_range_in_file(self, tmp_path, caplog) -> None:
        path = tmp_path / "Huge"
        path.write_bytes(self._fat_with_slice_at_end_of_64bit_range())
        assert [r.architecture_name for r in decode_path(path)] == ["x86_64"]
        assert len(_warnings(caplog)) == 1

    def test_diagnostics_use_package_logger(self, caplog) -> None:
        decode(io.BytesIO(b""))
        assert [r.name for r in _warnings(caplog)] == ["machodeps.macho_parse"]

    def test_unrecognized_input(self, caplog) -> None:
        assert decode(io.BytesIO(b"#!/bin/sh\necho hello\n"), "hello.sh") == []
        warnings = _warnings(caplog)
        assert len(warnings) == 1
        assert "hello.sh" in warnings[0].getMessage()

    def test_empty_input(self, caplog) -> None:
        assert decode(io.BytesIO(b"")) == []
        assert len(_warnings(caplog)) == 1

    def test_idempotent(self) -> None:
        data = fat_archive([(CpuType.X86_64, 3, self.x86_64_slice), (CpuType.ARM64, 0, self.arm64_slice)])
        source = io.BytesIO(data)
        assert decode(source) == decode(source)

    def test_well_formed_input_is_silent(self, caplog) -> None:
        decode(io.BytesIO(self.thin_data))
        assert _warnings(caplog) == []


class TestDecodePath:
    def test_decode_path(self, tmp_path) -> None:
        path = tmp_path / "Foo"
        path.write_bytes(thin_macho([load_dylib("/usr/lib/libSystem.B.dylib")]))
        reports = decode_path(path)
        assert [r.dependencies for r in reports] == [["/usr/lib/libSystem.B.dylib"]]
        assert decode_path(str(path)) == reports

    def test_missing_file(self, tmp_path, caplog) -> None:
        path = tmp_path / "does-not-exist"
        assert decode_path(path) == []
        warnings = _warnings(caplog)
        assert len(warnings) == 1
        assert warnings[0].getMessage().startswith(f"Could not open file: {path}")

    def test_directory(self, tmp_path, caplog) -> None:
        assert decode_path(tmp_path) == []
        assert len(_warnings(caplog)) == 1
