"""
构建管道单元测试

测试构建管道、构建步骤、构建上下文以及完整的仓库构建流程。
"""

import gzip
import hashlib
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from debian.deb822 import Deb822

from aptrepo.build.assigner import ComponentAssigner
from aptrepo.build.build_context import BuildContext, BuildError
from aptrepo.build.build_pipeline import BuildPipeline
from aptrepo.build.builder import Builder, build_repository
from aptrepo.build.steps.build_step import BuildStep
from aptrepo.build.steps.preflight_step import PreflightStep
from aptrepo.config.schema import ComponentModel, DistributionModel, RepositoryConfig

BUILD_TIME = datetime(2024, 10, 2, 10, 0, 0, tzinfo=timezone.utc)


class MockBuildStep(BuildStep):
    """模拟构建步骤"""

    def __init__(self, name="mock", progress_range=(0, 10)):
        super().__init__(name, "Mock step")
        self._progress_range = progress_range
        self.execute_called = False

    def get_progress_range(self):
        return self._progress_range

    def execute(self, context):
        self.execute_called = True
        context.build_stats['mock_processed'] = True


class AlternatingAssigner(ComponentAssigner):
    """每次调用轮换组件，用于验证分配结果的一致性检查"""

    def __init__(self):
        self.calls = 0

    def assign(self, fields, config):
        components = config.distributions[0].components
        self.calls += 1
        return components[self.calls % len(components)]


class SkipAllAssigner(ComponentAssigner):
    def assign(self, fields, config):
        return None


def _config(source_dir, target_dir, **kwargs) -> RepositoryConfig:
    kwargs.setdefault("architectures", ["amd64"])
    return RepositoryConfig(source_dir=source_dir, target_dir=target_dir, **kwargs)


def _read_packages(path):
    text = path.read_text(encoding="utf-8")
    return [Deb822(chunk.splitlines()) for chunk in text.split("\n\n") if chunk.strip()]


def _read_release(path):
    return Deb822(path.read_text(encoding="utf-8").splitlines())


class TestBuildContext:
    """BuildContext 测试"""

    def test_init(self, source_dir, target_dir):
        context = BuildContext(_config(source_dir, target_dir))

        assert context.target_dir == target_dir
        assert context.archives == []
        assert context.build_stats['packages_indexed'] == 0
        assert context.index.architectures == ("amd64",)

    def test_report_progress(self, source_dir, target_dir):
        callback = MagicMock()
        context = BuildContext(_config(source_dir, target_dir), progress_callback=callback)

        context.report_progress("stage", 50, "half")

        callback.assert_called_once_with("stage", 50, 100, "half")


class TestBuildPipeline:
    """BuildPipeline 测试"""

    def test_default_steps(self):
        pipeline = BuildPipeline()
        assert [step.name for step in pipeline.get_steps()] == [
            "preflight", "scan", "process", "index", "release",
        ]
        assert pipeline.validate_pipeline() == []

    def test_add_and_remove_step(self):
        pipeline = BuildPipeline()
        step = MockBuildStep(progress_range=(100, 110))

        pipeline.add_step(step)
        assert pipeline.get_steps()[-1] is step
        assert any("100%" in e for e in pipeline.validate_pipeline())

        pipeline.remove_step("mock")
        assert pipeline.validate_pipeline() == []

    def test_validate_gap(self):
        pipeline = BuildPipeline()
        pipeline.remove_step("scan")
        errors = pipeline.validate_pipeline()
        assert any("process" in e for e in errors)

    def test_validate_empty(self):
        pipeline = BuildPipeline()
        for step in pipeline.get_steps():
            pipeline.remove_step(step.name)
        assert pipeline.validate_pipeline() == ["构建管道中没有步骤"]

    def test_custom_step_executed(self, source_dir, target_dir):
        pipeline = BuildPipeline()
        step = MockBuildStep()
        pipeline._steps = [step]

        context = pipeline.execute(_config(source_dir, target_dir))

        assert step.execute_called
        assert context.build_stats['mock_processed']

    def test_unexpected_error_wrapped(self, source_dir, target_dir):
        pipeline = BuildPipeline()
        step = MockBuildStep()
        step.execute = MagicMock(side_effect=RuntimeError("boom"))
        pipeline._steps = [step]

        with pytest.raises(BuildError, match="boom"):
            pipeline.execute(_config(source_dir, target_dir))

    def test_config_is_copied(self, source_dir, target_dir):
        config = _config(source_dir, target_dir)
        pipeline = BuildPipeline()
        pipeline._steps = [MockBuildStep()]

        context = pipeline.execute(config)

        assert context.config == config
        assert context.config is not config


class TestPreflight:
    """预检步骤测试"""

    def test_target_must_not_exist(self, source_dir, target_dir):
        target_dir.mkdir()
        context = BuildContext(_config(source_dir, target_dir))
        with pytest.raises(BuildError, match="不存在"):
            PreflightStep().execute(context)

    def test_source_must_be_directory(self, tmp_path, target_dir):
        source = tmp_path / "file.txt"
        source.write_text("x")
        context = BuildContext(_config(source, target_dir))
        with pytest.raises(BuildError):
            PreflightStep().execute(context)
        assert not target_dir.exists()

    def test_creates_layout(self, source_dir, target_dir):
        PreflightStep().execute(BuildContext(_config(source_dir, target_dir)))
        assert (target_dir / "pool").is_dir()
        assert (target_dir / "dists").is_dir()


class TestRepositoryBuild:
    """完整构建流程测试"""

    def test_single_package(self, make_deb, source_dir, target_dir):
        deb = make_deb("hello_1.0_amd64.deb", "hello", architecture="amd64")

        context = build_repository(_config(source_dir, target_dir), build_time=BUILD_TIME)

        pool_file = target_dir / "pool" / "main" / "h" / "hello" / "hello_1.0_amd64.deb"
        assert pool_file.read_bytes() == deb.read_bytes()

        binary_dir = target_dir / "dists" / "devel" / "main" / "binary-amd64"
        records = _read_packages(binary_dir / "Packages")
        assert len(records) == 1
        record = records[0]
        assert record["Package"] == "hello"
        assert record["Filename"] == "pool/main/h/hello/hello_1.0_amd64.deb"
        assert (target_dir / record["Filename"]).is_file()
        assert int(record["Size"]) == deb.stat().st_size
        assert record["MD5sum"] == hashlib.md5(deb.read_bytes()).hexdigest()
        assert record["SHA1"] == hashlib.sha1(deb.read_bytes()).hexdigest()
        assert record["SHA256"] == hashlib.sha256(deb.read_bytes()).hexdigest()

        assert context.build_stats['packages_indexed'] == 1
        assert context.build_stats['archives_found'] == 1

    def test_control_fields_preserved(self, make_deb, source_dir, target_dir):
        make_deb("hello_1.0_amd64.deb", "hello")
        build_repository(_config(source_dir, target_dir), build_time=BUILD_TIME)

        packages = target_dir / "dists" / "devel" / "main" / "binary-amd64" / "Packages"
        record = _read_packages(packages)[0]
        assert list(record.keys()) == [
            "Package", "Version", "Architecture", "Maintainer", "Description",
            "Filename", "Size", "MD5sum", "SHA1", "SHA256",
        ]
        assert "Long description of hello." in record["Description"]

    def test_packages_gz_matches_packages(self, make_deb, source_dir, target_dir):
        make_deb("a_1.0_amd64.deb", "a")
        make_deb("b_1.0_amd64.deb", "b")
        build_repository(_config(source_dir, target_dir), build_time=BUILD_TIME)

        binary_dir = target_dir / "dists" / "devel" / "main" / "binary-amd64"
        assert gzip.decompress((binary_dir / "Packages.gz").read_bytes()) == (binary_dir / "Packages").read_bytes()

    def test_arch_all_fan_out(self, make_deb, source_dir, target_dir):
        make_deb("docs_1.0_all.deb", "docs", architecture="all")
        config = _config(source_dir, target_dir, architectures=["i386", "amd64"])

        build_repository(config, build_time=BUILD_TIME)

        dist_dir = target_dir / "dists" / "devel"
        for arch in ("i386", "amd64"):
            records = _read_packages(dist_dir / "main" / f"binary-{arch}" / "Packages")
            assert [r["Package"] for r in records] == ["docs"]
            assert records[0]["Architecture"] == "all"
        assert len(list((target_dir / "pool").rglob("*.deb"))) == 1

    def test_unsupported_architecture(self, make_deb, source_dir, target_dir):
        make_deb("arm_1.0_arm64.deb", "arm", architecture="arm64")
        make_deb("x86_1.0_amd64.deb", "x86", architecture="amd64")

        context = build_repository(_config(source_dir, target_dir), build_time=BUILD_TIME)

        assert (target_dir / "pool" / "main" / "a" / "arm" / "arm_1.0_arm64.deb").is_file()
        records = _read_packages(target_dir / "dists" / "devel" / "main" / "binary-amd64" / "Packages")
        assert [r["Package"] for r in records] == ["x86"]
        assert context.build_stats['packages_dropped'] == 1

    def test_archive_without_control_skipped(self, make_deb, source_dir, target_dir):
        make_deb("broken_1.0_amd64.deb", None)
        make_deb("good_1.0_amd64.deb", "good")

        context = build_repository(_config(source_dir, target_dir), build_time=BUILD_TIME)

        assert not (target_dir / "pool" / "main" / "b").exists()
        records = _read_packages(target_dir / "dists" / "devel" / "main" / "binary-amd64" / "Packages")
        assert [r["Package"] for r in records] == ["good"]
        assert context.build_stats['archives_skipped'] == 1

    def test_non_candidates_ignored(self, make_deb, source_dir, target_dir):
        make_deb("good_1.0_amd64.deb", "good")
        (source_dir / "notes.txt").write_text("not a package")
        (source_dir / "sub.deb").mkdir()

        context = build_repository(_config(source_dir, target_dir), build_time=BUILD_TIME)

        assert context.build_stats['archives_found'] == 1

    def test_discovery_order_in_index(self, make_deb, source_dir, target_dir):
        for name in ("zeta", "alpha", "mid"):
            make_deb(f"{name}_1.0_amd64.deb", name)

        build_repository(_config(source_dir, target_dir), build_time=BUILD_TIME)

        records = _read_packages(target_dir / "dists" / "devel" / "main" / "binary-amd64" / "Packages")
        assert [r["Package"] for r in records] == ["alpha", "mid", "zeta"]

    def test_distribution_release(self, make_deb, source_dir, target_dir):
        make_deb("docs_1.0_all.deb", "docs", architecture="all")
        config = _config(
            source_dir, target_dir,
            architectures=["i386", "amd64"],
            distributions=[DistributionModel(name="stable", origin="Example", label="Stable")],
        )

        build_repository(config, build_time=BUILD_TIME)

        dist_dir = target_dir / "dists" / "stable"
        release = _read_release(dist_dir / "Release")
        assert release["Codename"] == "stable"
        assert release["Origin"] == "Example"
        assert release["Label"] == "Stable"
        assert release["Date"] == "Wed, 02 Oct 2024 10:00:00 UTC"
        assert release["Architectures"] == "i386 amd64"
        assert release["Components"] == "main"
        assert "Description" not in release

        path_sets = []
        for field in ("MD5Sum", "SHA1", "SHA256"):
            entries = [line.split() for line in release[field].strip().splitlines()]
            path_sets.append([entry[2] for entry in entries])
            for digest, size, relative in entries:
                assert int(size) == (dist_dir / relative).stat().st_size
        assert path_sets[0] == path_sets[1] == path_sets[2]
        assert path_sets[0] == [
            "main/binary-i386/Packages",
            "main/binary-i386/Packages.gz",
            "main/binary-i386/Release",
            "main/binary-amd64/Packages",
            "main/binary-amd64/Packages.gz",
            "main/binary-amd64/Release",
        ]

    def test_empty_source(self, source_dir, target_dir):
        build_repository(_config(source_dir, target_dir), build_time=BUILD_TIME)

        release = _read_release(target_dir / "dists" / "devel" / "Release")
        assert release["Codename"] == "devel"
        assert release["MD5Sum"].strip() == ""
        assert not (target_dir / "dists" / "devel" / "main").exists()

    def test_deterministic_output(self, make_deb, source_dir, tmp_path):
        make_deb("a_1.0_amd64.deb", "a")
        make_deb("b_1.0_all.deb", "b", architecture="all")
        first = tmp_path / "first"
        second = tmp_path / "second"

        build_repository(_config(source_dir, first), build_time=BUILD_TIME)
        build_repository(_config(source_dir, second), build_time=BUILD_TIME)

        first_files = sorted(p.relative_to(first) for p in first.rglob("*") if p.is_file())
        second_files = sorted(p.relative_to(second) for p in second.rglob("*") if p.is_file())
        assert first_files == second_files
        for relative in first_files:
            assert (first / relative).read_bytes() == (second / relative).read_bytes()

    def test_unassigned_packages_skipped(self, make_deb, source_dir, target_dir):
        make_deb("a_1.0_amd64.deb", "a")

        context = build_repository(_config(source_dir, target_dir), assigner=SkipAllAssigner(), build_time=BUILD_TIME)

        assert list((target_dir / "pool").iterdir()) == []
        assert context.build_stats['archives_skipped'] == 1

    def test_unstable_assignment_fails(self, make_deb, source_dir, target_dir):
        make_deb("a_1.0_amd64.deb", "a")
        config = _config(
            source_dir, target_dir,
            distributions=[DistributionModel(components=[ComponentModel(name="main"), ComponentModel(name="extra")])],
        )

        with pytest.raises(BuildError, match="不稳定"):
            build_repository(config, assigner=AlternatingAssigner(), build_time=BUILD_TIME)

    def test_corrupt_archive_fails(self, source_dir, target_dir):
        (source_dir / "bad_1.0_amd64.deb").write_bytes(b"garbage")

        with pytest.raises(BuildError, match="bad_1.0_amd64.deb"):
            build_repository(_config(source_dir, target_dir), build_time=BUILD_TIME)

    def test_progress_reaches_100(self, make_deb, source_dir, target_dir):
        make_deb("a_1.0_amd64.deb", "a")
        callback = MagicMock()

        BuildPipeline().execute(_config(source_dir, target_dir), progress_callback=callback)

        percentages = [call.args[1] for call in callback.call_args_list]
        assert percentages == sorted(percentages)
        assert percentages[-1] == 100


class TestBuilder:
    """Builder 测试"""

    def test_successful_build(self, make_deb, source_dir, target_dir):
        make_deb("a_1.0_amd64.deb", "a")

        result = Builder().build(_config(source_dir, target_dir), build_time=BUILD_TIME)

        assert result.success
        assert result.error is None
        assert result.target_dir == target_dir
        assert result.packages_indexed == 1
        assert result.build_time is not None

    def test_existing_target_fails_without_output(self, make_deb, source_dir, target_dir):
        make_deb("a_1.0_amd64.deb", "a")
        target_dir.mkdir()

        result = Builder().build(_config(source_dir, target_dir))

        assert not result.success
        assert str(target_dir) in result.error
        assert list(target_dir.iterdir()) == []

    def test_validate_build_pipeline(self):
        assert Builder().validate_build_pipeline() == []
