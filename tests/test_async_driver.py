"""Tests for the suspending driver."""

import asyncio

import pytest

from blank import render_async, run_async
from blank.exceptions import ContextError, FileAccessError, TranspileError


def make(tmp_path, name, text):
    path = tmp_path / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


class Recorder:
    """Callback that records every call."""

    def __init__(self):
        self.calls = []

    def __call__(self, error=None):
        self.calls.append(error)


def run(path, context):
    callback = Recorder()
    assert run_async(path, context, callback) is None
    return callback.calls


def test_success_calls_back_once_with_none(tmp_path, out):
    path = make(tmp_path, "main._", "A %{ write('X'); }% B %{ write('Y'); }% C")
    assert run(path, {"write": out.write}) == [None]
    assert out.text == "A X B Y C"


def test_nested_include(tmp_path, out):
    make(tmp_path, "sub/b._", "B%{ include('c._') }%")
    make(tmp_path, "sub/c._", "C")
    path = make(tmp_path, "a._", "A %{ include('sub/b._') }% D")
    assert run(path, {"write": out.write}) == [None]
    assert out.text == "A BC D"


def test_include_context_merge(tmp_path, out):
    make(tmp_path, "child._", "%{ write(a); write(b); write(c) }%")
    path = make(tmp_path, "main._", "%{ include('child._', {'b': 3, 'c': 4}) }%%{ write(b) }%")
    assert run(path, {"write": out.write, "a": 1, "b": 2}) == [None]
    assert out.text == "1342"


def test_include_in_loop(tmp_path, out):
    make(tmp_path, "item._", "<%{ write(n) }%>")
    path = make(
        tmp_path,
        "list._",
        "%{ for n in range(3): }%%{ include('item._', {'n': n}) }%%{ end }%",
    )
    assert run(path, {"write": out.write}) == [None]
    assert out.text == "<0><1><2>"


def test_include_text_in_string_is_written(tmp_path, out):
    path = make(tmp_path, "main._", "%{ write('include(x)') }%")
    assert run(path, {"write": out.write}) == [None]
    assert out.text == "include(x)"


def test_missing_file_reported_once(tmp_path, out):
    calls = run(tmp_path / "missing._", {"write": out.write})
    assert len(calls) == 1
    assert isinstance(calls[0], FileAccessError)


def test_missing_write_reported_once(tmp_path):
    calls = run(tmp_path / "missing._", {})
    assert len(calls) == 1
    assert isinstance(calls[0], ContextError)


def test_transpile_error_reported_once(tmp_path, out):
    path = make(tmp_path, "bad._", "%{ write(1)")
    calls = run(path, {"write": out.write})
    assert len(calls) == 1
    assert isinstance(calls[0], TranspileError)


def test_nested_error_reported_once(tmp_path, out):
    make(tmp_path, "leaf._", "%{ raise ValueError('deep') }%")
    make(tmp_path, "mid._", "mid %{ include('leaf._') }%")
    path = make(tmp_path, "top._", "top %{ include('mid._') }% never")
    calls = run(path, {"write": out.write})
    assert len(calls) == 1
    assert isinstance(calls[0], ValueError)
    assert str(calls[0]) == "deep"
    assert out.text == "top mid "


def test_callback_error_is_not_reported_to_callback(tmp_path, out):
    path = make(tmp_path, "ok._", "ok")
    calls = []

    def callback(error=None):
        calls.append(error)
        raise RuntimeError("callback failed")

    with pytest.raises(RuntimeError, match="callback failed"):
        run_async(path, {"write": out.write}, callback)
    assert calls == [None]


class TestInsideRunningLoop:
    def test_fire_and_forget(self, tmp_path, out):
        path = make(tmp_path, "main._", "A %{ include('part._') }% C")
        make(tmp_path, "part._", "B")

        async def main():
            done = asyncio.Event()
            calls = []

            def callback(error=None):
                calls.append(error)
                done.set()

            run_async(path, {"write": out.write}, callback)
            await asyncio.wait_for(done.wait(), timeout=5)
            return calls

        assert asyncio.run(main()) == [None]
        assert out.text == "A B C"

    def test_returns_task_and_reports_failure(self, tmp_path, out):
        path = make(tmp_path, "bad._", "%{ raise ValueError('late') }%")

        async def main():
            calls = []
            task = run_async(path, {"write": out.write}, calls.append)
            assert isinstance(task, asyncio.Task)
            with pytest.raises(ValueError):
                await task
            return calls

        calls = asyncio.run(main())
        assert len(calls) == 1
        assert isinstance(calls[0], ValueError)

    def test_cancelled_run_is_reported(self, tmp_path, out):
        path = make(tmp_path, "main._", "never")

        async def main():
            calls = []
            task = run_async(path, {"write": out.write}, calls.append)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task
            return calls

        calls = asyncio.run(main())
        assert len(calls) == 1
        assert isinstance(calls[0], asyncio.CancelledError)


def test_render_async_raises(tmp_path, out):
    make(tmp_path, "child._", "%{ raise KeyError('k') }%")
    path = make(tmp_path, "main._", "%{ include('child._') }%")
    with pytest.raises(KeyError):
        asyncio.run(render_async(path, {"write": out.write}))


def test_independent_runs_interleave(tmp_path):
    make(tmp_path, "part._", "%{ write(name) }%")
    path = make(tmp_path, "main._", "[%{ include('part._') }%|%{ include('part._') }%]")

    async def main():
        first, second = [], []
        await asyncio.gather(
            render_async(path, {"write": first.append, "name": "a"}),
            render_async(path, {"write": second.append, "name": "b"}),
        )
        return "".join(first), "".join(second)

    assert asyncio.run(main()) == ("[a|a]", "[b|b]")


def test_async_require(tmp_path, out):
    make(tmp_path, "fmt.py", "def money(n):\n    return f'${n:.2f}'\n")
    path = make(tmp_path, "price._", "%{ fmt = require('./fmt') }%%{ write(fmt.money(3)) }%")
    assert run(path, {"write": out.write}) == [None]
    assert out.text == "$3.00"
