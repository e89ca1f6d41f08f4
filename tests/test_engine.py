"""批量处理引擎测试。

测试输入解析、单项处理、并发调度、结果汇总和输出路由。
"""

from io import BytesIO, StringIO
from pathlib import Path

import pytest
from PIL import Image

from py_imagemin.engine import (
    BatchProcessor,
    CollectingSink,
    ConcurrentExecutor,
    OutputRouter,
    ResultAggregator,
    StreamSink,
    process_item,
    resolve_inputs,
    stdin_item,
)
from py_imagemin.exceptions import MultipleOutputsError
from py_imagemin.models import (
    ItemFailedEvent,
    ItemFailure,
    ItemSucceededEvent,
    ItemSuccess,
    ProcessingOptions,
    ReportLevel,
    SourceItem,
    SummaryEvent,
)
from py_imagemin.plugins import TransformChain, default_registry
from tests.conftest import InFlightCounter, make_png


def _memory_items(count: int) -> list[SourceItem]:
    return [
        SourceItem(identifier=i, relative_path=f"item-{i}.png", raw_bytes=make_png((16, 16)))
        for i in range(count)
    ]


def _relative(items: list[SourceItem]) -> list[str]:
    return [item.relative_path for item in items]


class TestResolver:
    """输入解析测试"""

    def test_literal_paths_keep_order(self, workspace: Path):
        items = resolve_inputs(["plain.png", "photo.jpg"], workspace)

        assert _relative(items) == ["plain.png", "photo.jpg"]
        assert items[0].source_path == (workspace / "plain.png").resolve()
        assert not items[0].is_in_memory

    def test_glob(self, workspace: Path):
        assert _relative(resolve_inputs(["*.png"], workspace)) == ["plain.png"]

    def test_recursive_glob(self, workspace: Path):
        items = resolve_inputs(["**/*.png"], workspace)
        assert _relative(items) == ["a/b/c.png", "plain.png"]

    def test_exclusion_pattern(self, workspace: Path):
        """测试 ! 开头的排除模式"""
        items = resolve_inputs(["**/*.png", "!a/**"], workspace)
        assert _relative(items) == ["plain.png"]

    def test_duplicates_removed(self, workspace: Path):
        items = resolve_inputs(["plain.png", "*.png", "./plain.png"], workspace)
        assert _relative(items) == ["plain.png"]

    def test_absolute_pattern(self, workspace: Path):
        items = resolve_inputs([str(workspace / "*.gif")], workspace)
        assert _relative(items) == ["anim.gif"]

    def test_directories_are_skipped(self, workspace: Path):
        assert resolve_inputs(["a", "a/*"], workspace) == []

    def test_no_match(self, workspace: Path):
        assert resolve_inputs(["missing.png", "*.bmp"], workspace) == []

    def test_stdin_item(self):
        item = stdin_item(b"payload")

        assert item.identifier == 0
        assert item.relative_path == "stdin"
        assert item.source_path is None
        assert item.is_in_memory
        assert item.raw_bytes == b"payload"


class TestProcessor:
    """单项处理测试"""

    @pytest.fixture
    def optipng(self) -> TransformChain:
        return default_registry.resolve(["optipng"])

    def test_preserve_tree(self, workspace: Path, optipng: TransformChain):
        """测试保持目录结构：cwd/a/b/c.png -> out/a/b/c.png"""
        options = ProcessingOptions(cwd=workspace, out_dir=Path("out"), preserve_tree=True)
        item = resolve_inputs(["a/b/c.png"], workspace)[0]

        outcome = process_item(item, optipng, options)

        expected = workspace.resolve() / "out" / "a" / "b" / "c.png"
        assert isinstance(outcome, ItemSuccess)
        assert outcome.destination_path == expected
        assert expected.stat().st_size == outcome.optimized_size

    def test_flat_output(self, workspace: Path, optipng: TransformChain):
        """测试不保持目录结构：cwd/a/b/c.png -> out/c.png"""
        options = ProcessingOptions(cwd=workspace, out_dir=Path("out"))
        item = resolve_inputs(["a/b/c.png"], workspace)[0]

        outcome = process_item(item, optipng, options)

        assert outcome.destination_path == workspace.resolve() / "out" / "c.png"
        assert outcome.destination_path.is_file()

    def test_success_sizes(self, workspace: Path, optipng: TransformChain):
        options = ProcessingOptions(cwd=workspace, out_dir=workspace / "out")
        item = resolve_inputs(["plain.png"], workspace)[0]

        outcome = process_item(item, optipng, options)

        assert outcome.original_size == (workspace / "plain.png").stat().st_size
        assert outcome.optimized_size == outcome.destination_path.stat().st_size
        assert outcome.optimized_size < outcome.original_size
        assert outcome.format_name == "PNG"

    def test_written_outcome_drops_bytes(self, workspace: Path, optipng: TransformChain):
        """测试已写入文件的结果不保留优化后的字节"""
        options = ProcessingOptions(cwd=workspace, out_dir=Path("out"))
        item = resolve_inputs(["plain.png"], workspace)[0]

        outcome = process_item(item, optipng, options)

        assert isinstance(outcome, ItemSuccess)
        assert outcome.destination_path.is_file()
        assert outcome.data == b""

    def test_oversized_image_passes_through(self, workspace: Path, monkeypatch):
        """测试超过像素上限的图像不会让格式识别失败"""
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
        options = ProcessingOptions(cwd=workspace, out_dir=Path("out"))
        item = resolve_inputs(["plain.png"], workspace)[0]

        outcome = process_item(item, default_registry.resolve(["svgo"]), options)

        assert isinstance(outcome, ItemSuccess)
        assert outcome.format_name is None
        assert outcome.destination_path == workspace.resolve() / "out" / "plain.png"

    def test_extension_follows_output_format(self, workspace: Path):
        """测试输出格式改变时修正扩展名"""
        options = ProcessingOptions(cwd=workspace, out_dir=Path("out"))
        item = resolve_inputs(["plain.png"], workspace)[0]

        outcome = process_item(item, default_registry.resolve(["webp"]), options)

        assert outcome.format_name == "WEBP"
        assert outcome.destination_path.name == "plain.webp"
        assert not (workspace / "out" / "plain.png").exists()

    def test_virtual_destination(self, workspace: Path, optipng: TransformChain):
        """测试没有输出目录时不写任何文件"""
        options = ProcessingOptions(cwd=workspace)
        item = resolve_inputs(["plain.png"], workspace)[0]
        before = sorted(workspace.rglob("*"))

        outcome = process_item(item, optipng, options)

        assert outcome.destination_path is None
        assert outcome.data
        assert sorted(workspace.rglob("*")) == before

    def test_stdin_item_destination(self, workspace: Path, optipng: TransformChain):
        options = ProcessingOptions(cwd=workspace, out_dir=Path("out"))

        outcome = process_item(stdin_item(make_png()), optipng, options)

        assert outcome.relative_path == "stdin"
        assert outcome.destination_path == workspace.resolve() / "out" / "stdin.png"

    def test_corrupt_image(self, workspace: Path, broken_png: Path, optipng: TransformChain):
        options = ProcessingOptions(cwd=workspace, out_dir=Path("out"))
        item = resolve_inputs([broken_png.name], workspace)[0]

        outcome = process_item(item, optipng, options)

        assert isinstance(outcome, ItemFailure)
        assert outcome.error_type == "TransformError"
        assert "optipng" in outcome.error_detail
        assert not (workspace / "out").exists()

    def test_unreadable_source(self, workspace: Path, optipng: TransformChain):
        options = ProcessingOptions(cwd=workspace)
        item = SourceItem(identifier=workspace / "gone.png", relative_path="gone.png")

        outcome = process_item(item, optipng, options)

        assert isinstance(outcome, ItemFailure)
        assert outcome.error_type == "SourceReadError"

    def test_unwritable_destination(self, workspace: Path, optipng: TransformChain):
        """测试输出目录是文件时写入失败"""
        options = ProcessingOptions(cwd=workspace, out_dir=workspace / "notes.txt")
        item = resolve_inputs(["plain.png"], workspace)[0]

        outcome = process_item(item, optipng, options)

        assert isinstance(outcome, ItemFailure)
        assert outcome.error_type == "DestinationWriteError"


class TestConcurrentExecutor:
    """并发执行器测试"""

    @pytest.mark.parametrize("count", [0, 1, 2, 7, 25])
    def test_exactly_one_outcome_per_item(self, count: int):
        """测试每个输入恰好产出一个结果"""
        items = _memory_items(count)
        executor = ConcurrentExecutor(max_workers=4)

        outcomes = list(
            executor.execute_tasks(
                items,
                lambda item: ItemSuccess(
                    relative_path=item.relative_path, original_size=1, optimized_size=1
                ),
            )
        )

        assert len(outcomes) == count
        assert sorted(o.relative_path for o in outcomes) == sorted(_relative(items))

    def test_task_exception_becomes_failure(self):
        items = _memory_items(5)

        def task(item: SourceItem) -> ItemSuccess:
            if item.identifier == 2:
                raise RuntimeError("worker crashed")
            return ItemSuccess(relative_path=item.relative_path, original_size=1, optimized_size=1)

        outcomes = list(ConcurrentExecutor(max_workers=2).execute_tasks(items, task))

        failures = [o for o in outcomes if isinstance(o, ItemFailure)]
        assert len(outcomes) == 5
        assert [f.relative_path for f in failures] == ["item-2.png"]
        assert failures[0].error_detail == "worker crashed"

    @pytest.mark.parametrize("limit", [1, 2, 3])
    def test_concurrency_ceiling(self, limit: int, counter: InFlightCounter):
        """测试同时运行的处理不超过并发上限"""
        items = _memory_items(12)
        options = ProcessingOptions(max_concurrency=limit)

        result = BatchProcessor(TransformChain([counter]), options).process(items)

        assert counter.calls == 12
        assert 1 <= counter.peak <= limit
        assert result.summary.success_count == 12

    def test_invalid_worker_count(self):
        with pytest.raises(ValueError):
            ConcurrentExecutor(max_workers=0)

    def test_process_pool(self, workspace: Path):
        options = ProcessingOptions(
            cwd=workspace, out_dir=Path("out"), max_concurrency=2, executor_type="process"
        )
        items = resolve_inputs(["**/*.png"], workspace)

        result = BatchProcessor(default_registry.resolve(["optipng"]), options).process(items)

        assert result.summary.success_count == 2
        assert (workspace / "out" / "plain.png").is_file()
        assert (workspace / "out" / "c.png").is_file()


class TestBatchProcessor:
    """批量处理测试"""

    def test_failure_does_not_stop_siblings(self, workspace: Path, broken_png: Path):
        options = ProcessingOptions(cwd=workspace, out_dir=Path("out"), max_concurrency=2)
        items = resolve_inputs(["plain.png", broken_png.name, "a/b/c.png"], workspace)

        result = BatchProcessor(default_registry.resolve(None), options).process(items)

        assert result.summary.success_count == 2
        assert result.summary.failure_count == 1
        assert len(result.outcomes) == 3
        assert result.failures[0].relative_path == "broken.png"
        assert result.first_error == result.failures[0].error_detail

    def test_events_reach_sink(self, workspace: Path):
        sink = CollectingSink()
        options = ProcessingOptions(cwd=workspace, out_dir=Path("out"), report_level="verbose")
        items = resolve_inputs(["plain.png", "photo.jpg"], workspace)

        BatchProcessor(default_registry.resolve(None), options, sink=sink).process(items)

        kinds = [event.event for event in sink.events]
        assert kinds == ["item_succeeded", "item_succeeded", "summary"]
        positions = [event.position for event in sink.events[:2]]
        assert positions == [1, 2]


def _success(path: str, original: int, optimized: int) -> ItemSuccess:
    return ItemSuccess(relative_path=path, original_size=original, optimized_size=optimized)


def _failure(path: str, detail: str = "bad data") -> ItemFailure:
    return ItemFailure(relative_path=path, error_detail=detail)


class TestResultAggregator:
    """结果汇总测试"""

    def test_percent_saved(self):
        """测试节省百分比"""
        assert _success("empty.png", 0, 0).percent == 0
        outcome = _success("a.png", 1000, 400)
        assert outcome.saved == 600
        assert outcome.percent == 60.0

    def test_counters(self):
        aggregator = ResultAggregator(total=3)
        aggregator.record(_success("a.png", 1000, 400))
        aggregator.record(_failure("b.png", "first"))
        aggregator.record(_failure("c.png", "second"))

        summary = aggregator.finalize()

        assert summary.success_count == 1
        assert summary.failure_count == 2
        assert summary.total_count == 3
        assert summary.total_original_bytes == 1000
        assert summary.total_saved_bytes == 600
        assert summary.saved_percent == 60.0
        assert aggregator.first_error == "first"
        assert aggregator.settled == 3

    def test_empty_run(self):
        summary = ResultAggregator(total=0).finalize()
        assert summary.total_count == 0
        assert summary.saved_percent == 0

    def test_verbose_reports_everything(self):
        sink = CollectingSink()
        aggregator = ResultAggregator(total=3, report_level=ReportLevel.VERBOSE, sink=sink)
        aggregator.record(_success("a.png", 1000, 400))
        aggregator.record(_success("b.png", 500, 500))
        aggregator.record(_failure("c.png", "corrupt"))
        aggregator.finalize()

        assert [type(e) for e in sink.events] == [
            ItemSucceededEvent,
            ItemSucceededEvent,
            ItemFailedEvent,
            SummaryEvent,
        ]
        messages = sink.messages()
        assert messages[0] == 'Minifying image "a.png" (1 of 3) - saved 600 Bytes - 60%'
        assert messages[1] == 'Minifying image "b.png" (2 of 3) - already optimized'
        assert messages[2] == 'Minifying image "c.png" (3 of 3)\nError: corrupt'
        assert messages[3].startswith("Successfully compressed images: 2. ")
        assert "Unsuccessfully compressed images: 1." in messages[3]

    def test_quiet_reports_failures_only(self):
        sink = CollectingSink()
        aggregator = ResultAggregator(total=2, report_level=ReportLevel.QUIET, sink=sink)
        aggregator.record(_success("a.png", 1000, 400))
        aggregator.record(_failure("b.png"))
        aggregator.finalize()

        assert [e.event for e in sink.events] == ["item_failed"]

    def test_silent_reports_nothing(self):
        sink = CollectingSink()
        aggregator = ResultAggregator(total=2, report_level=ReportLevel.SILENT, sink=sink)
        aggregator.record(_success("a.png", 1000, 400))
        aggregator.record(_failure("b.png"))
        aggregator.finalize()

        assert sink.events == []

    def test_duplicate_outcome(self):
        aggregator = ResultAggregator(total=2)
        outcome = _success("a.png", 10, 5)
        aggregator.record(outcome)

        with pytest.raises(ValueError):
            aggregator.record(outcome)

    def test_record_after_finalize(self):
        aggregator = ResultAggregator(total=1)
        aggregator.finalize()

        with pytest.raises(ValueError):
            aggregator.record(_success("a.png", 10, 5))

    def test_stream_sink_writes_whole_lines(self):
        stream = StringIO()
        aggregator = ResultAggregator(
            total=1, report_level=ReportLevel.VERBOSE, sink=StreamSink(stream)
        )
        aggregator.record(_failure("a.png", "broken"))
        aggregator.finalize()

        lines = stream.getvalue().splitlines()
        assert lines[0] == '✖ Minifying image "a.png" (1 of 1)'
        assert lines[1] == "Error: broken"
        assert lines[2].startswith("ℹ Successfully compressed images: 0.")


class TestOutputRouter:
    """输出路由测试"""

    def test_multiple_items_without_out_dir(self):
        router = OutputRouter(ProcessingOptions())

        router.check_dispatch(0)
        router.check_dispatch(1)
        with pytest.raises(MultipleOutputsError) as exc_info:
            router.check_dispatch(2)
        assert "specify an output directory" in exc_info.value.message

    def test_multiple_items_with_out_dir(self, tmp_path: Path):
        router = OutputRouter(ProcessingOptions(out_dir=tmp_path))
        router.check_dispatch(5)
        assert router.writes_files

    def test_single_success_written(self):
        output = BytesIO()
        outcome = ItemSuccess(
            relative_path="a.png", original_size=10, optimized_size=4, data=b"tiny"
        )

        written = OutputRouter(ProcessingOptions()).route([outcome], output)

        assert written == 4
        assert output.getvalue() == b"tiny"

    def test_single_failure_writes_nothing(self):
        output = BytesIO()
        assert OutputRouter(ProcessingOptions()).route([_failure("a.png")], output) == 0
        assert output.getvalue() == b""

    def test_no_outcomes(self):
        output = BytesIO()
        assert OutputRouter(ProcessingOptions()).route([], output) == 0
        assert output.getvalue() == b""

    def test_multiple_outcomes_write_nothing(self):
        output = BytesIO()
        outcomes = [
            ItemSuccess(relative_path="a.png", original_size=2, optimized_size=1, data=b"a"),
            ItemSuccess(relative_path="b.png", original_size=2, optimized_size=1, data=b"b"),
        ]

        with pytest.raises(MultipleOutputsError):
            OutputRouter(ProcessingOptions()).route(outcomes, output)
        assert output.getvalue() == b""
