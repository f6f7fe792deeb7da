"""Pairwise circle collision detection.

Every invocation tests one pair of entities and appends a CollisionResult when
their circles overlap. Compile with:

    py2wgsl compile examples/collision.py --workgroup-size 8,8,1
"""

from typing import TypeAlias

from py2wgsl.dsl import (
    Array,
    IterationPosition,
    Output,
    Vec2F32,
    VecInput,
    config,
    f32,
    input_array,
    output_vec,
    u32,
)

example_module_const: u32 = 42


@config
class Uniforms:
    time: f32
    resolution: Vec2F32


Position: TypeAlias = input_array(Array[f32, 2])
Radius: TypeAlias = input_array(f32)


@output_vec
class CollisionResult:
    entity1: u32
    entity2: u32


def calculate_distance_squared(p1: Array[f32, 2], p2: Array[f32, 2]) -> f32:
    dx = p1[0] - p2[0]
    dy = p1[1] - p2[1]
    return dx * dx + dy * dy


def main(iter_pos: IterationPosition):
    current_entity = iter_pos.x
    other_entity = iter_pos.y
    # Only test each unordered pair once
    if (
        current_entity >= VecInput.vec_len(Position)
        or other_entity >= VecInput.vec_len(Position)
        or current_entity == other_entity
        or current_entity >= other_entity
    ):
        return
    current_radius = VecInput.vec_val(Radius, current_entity)
    other_radius = VecInput.vec_val(Radius, other_entity)
    if current_radius <= 0.0 or other_radius <= 0.0:
        return
    current_pos = VecInput.vec_val(Position, current_entity)
    other_pos = VecInput.vec_val(Position, other_entity)
    dist_squared = calculate_distance_squared(current_pos, other_pos)
    radius_sum = current_radius + other_radius
    if dist_squared < radius_sum * radius_sum:
        Output.push(
            CollisionResult,
            CollisionResult(entity1=current_entity, entity2=other_entity),
        )
