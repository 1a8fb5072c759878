"""Tests for dockerfile_sources.extractor."""

from __future__ import annotations

from pathlib import Path

import pytest

from dockerfile_sources.extractor import (
    ExtractionError,
    FromExtractor,
    extract_images,
    read_dockerfile,
)


def test_extract_images_handles_multi_stage_and_comments() -> None:
    content = "FROM golang:1.21 as builder\nFROM alpine:latest\n# FROM ignored-comment"

    assert extract_images(content) == ["golang:1.21", "alpine:latest"]


def test_extract_images_is_case_insensitive_and_tolerates_indentation() -> None:
    content = (
        "  from python:3.12-slim AS base\n"
        "\tFrOm base\n"
        "RUN echo FROM nothing\n"
        "FROM\n"
        "FROMscratch\n"
        "FROM ghcr.io/org/tool@sha256:abcdef\n"
    )

    assert extract_images(content) == [
        "python:3.12-slim",
        "base",
        "ghcr.io/org/tool@sha256:abcdef",
    ]


def test_extract_images_keeps_platform_flag_as_first_argument() -> None:
    content = "FROM --platform=linux/amd64 node:20 AS build\n"

    assert extract_images(content) == ["--platform=linux/amd64"]


def test_extract_images_keeps_build_arg_references_verbatim() -> None:
    content = "ARG BASE=debian\nFROM ${BASE}:bookworm\nFROM $BASE\n"

    assert extract_images(content) == ["${BASE}:bookworm", "$BASE"]


def test_token_mode_keeps_names_containing_uppercase_as() -> None:
    content = "FROM registry.example.com/BASE:1.0 AS builder\n"

    assert extract_images(content, alias_split="token") == ["registry.example.com/BASE:1.0"]


def test_literal_mode_truncates_at_first_as_substring() -> None:
    content = (
        "FROM registry.example.com/BASE:1.0 AS builder\n"
        "FROM ASSETS\n"
        "FROM golang:1.21 as builder\n"
    )

    assert extract_images(content, alias_split="literal") == [
        "registry.example.com/B",
        "",
        "golang:1.21",
    ]


def test_extract_images_rejects_unknown_mode() -> None:
    with pytest.raises(ValueError):
        extract_images("FROM alpine\n", alias_split="keyword")


def test_extract_images_ignores_malformed_files() -> None:
    assert extract_images("this is not\n a Dockerfile {{\n") == []
    assert extract_images("") == []


def test_read_dockerfile_handles_crlf_and_invalid_bytes(tmp_path: Path) -> None:
    dockerfile = tmp_path / "Dockerfile"
    dockerfile.write_bytes(b"FROM alpine:3.19\r\n# \xff\xfe comment\r\nFROM busybox\r\n")

    assert read_dockerfile(dockerfile) == ["alpine:3.19", "busybox"]


def test_read_dockerfile_raises_for_unreadable_file(tmp_path: Path) -> None:
    with pytest.raises(ExtractionError, match="failed to open file"):
        read_dockerfile(tmp_path / "missing" / "Dockerfile")


def test_from_extractor_binds_mode(tmp_path: Path) -> None:
    dockerfile = tmp_path / "Dockerfile"
    dockerfile.write_text("FROM myorg/BASE\n", encoding="utf-8")

    assert FromExtractor().read(dockerfile) == ["myorg/BASE"]
    assert FromExtractor(alias_split="literal").read(dockerfile) == ["myorg/B"]
    assert FromExtractor(alias_split="literal").extract("FROM ubuntu\n") == ["ubuntu"]

    with pytest.raises(ValueError):
        FromExtractor(alias_split="bogus")
