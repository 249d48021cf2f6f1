"""Tests for the bounded yes/no prompt."""

import io
import os

import pytest

from soundness_installer.installation.prompt import (
    Answer,
    confirm_with_timeout,
    parse_answer,
)


@pytest.fixture
def pipe():
    read_fd, write_fd = os.pipe()
    reader = os.fdopen(read_fd, "r")
    writer = os.fdopen(write_fd, "w")
    yield reader, writer
    reader.close()
    if not writer.closed:
        writer.close()


@pytest.mark.parametrize(
    "line, expected",
    [
        ("y\n", Answer.YES),
        ("Yes\n", Answer.YES),
        ("  Y  ", Answer.YES),
        ("n\n", Answer.NO),
        ("\n", Answer.NO),
        ("maybe\n", Answer.NO),
    ],
)
def test_parse_answer(line, expected):
    assert parse_answer(line) is expected


def test_answer_confirmed():
    assert Answer.YES.confirmed
    assert not Answer.NO.confirmed
    assert not Answer.TIMED_OUT.confirmed


def test_reads_answer_from_pipe(pipe):
    reader, writer = pipe
    writer.write("y\n")
    writer.flush()

    assert confirm_with_timeout("Remove?", 1, stream=reader) is Answer.YES


def test_times_out_without_input(pipe, capsys):
    reader, _ = pipe

    answer = confirm_with_timeout("Remove?", 0.05, stream=reader)

    assert answer is Answer.TIMED_OUT
    assert "Remove? (y/n) [0s]: " in capsys.readouterr().out


def test_end_of_input_means_no(pipe):
    reader, writer = pipe
    writer.close()

    assert confirm_with_timeout("Remove?", 1, stream=reader) is Answer.NO


def test_stream_without_descriptor_is_read_directly(capsys):
    answer = confirm_with_timeout("Remove Rust?", 30, stream=io.StringIO("yes\n"))

    assert answer is Answer.YES
    assert "Remove Rust? (y/n) [30s]: " in capsys.readouterr().out
