"""
Pytest configuration and shared fixtures for transpiler tests.

This module contains fixtures that are shared across multiple test modules.
"""

import ast

import pytest

from py2wgsl.transpiler.collector import collect_info
from py2wgsl.transpiler.models import CollectedInfo, FunctionScope

SAMPLE_MODULE = """
from typing import TypeAlias
from dataclasses import dataclass

from py2wgsl.dsl import *

LIMIT: u32 = 16


@config
class Settings:
    gain: f32
    offset: Vec2F32


Position: TypeAlias = input_array(Vec2F32)


@output_vec
class Hit:
    index: u32
    score: f32


@output_array
class Slot:
    value: f32


@dataclass
class Pair:
    first: f32
    second: f32 = 0.0


def scale(value: f32, factor: f32) -> f32:
    return value * factor


def main(iter_pos: IterationPosition):
    return
"""


@pytest.fixture
def collected_info() -> CollectedInfo:
    """Collected info of a module declaring one type of every role."""
    return collect_info(ast.parse(SAMPLE_MODULE))


@pytest.fixture
def scope() -> FunctionScope:
    """Scope of a function with a few locals already declared."""
    return FunctionScope(
        declared={"x", "y", "flag", "value", "data", "i"},
        mutable=frozenset({"x", "data"}),
    )
