"""Tests for Ship domain logic."""

import pytest

from salvo.engine.ship import Coordinate, Orientation, Ship, ShipType


def test_ship_type_lengths() -> None:
    assert [ship_type.length for ship_type in ShipType] == [6, 5, 4, 3]


def test_ship_coordinates_horizontal_and_vertical() -> None:
    horizontal = Ship(3, Coordinate(1, 2), Orientation.HORIZONTAL)
    assert horizontal.coordinates() == [Coordinate(1, 2), Coordinate(2, 2), Coordinate(3, 2)]
    assert horizontal.end_point == Coordinate(3, 2)

    vertical = Ship(3, Coordinate(1, 2), Orientation.VERTICAL)
    assert vertical.coordinates() == [Coordinate(1, 2), Coordinate(1, 3), Coordinate(1, 4)]
    assert vertical.end_point == Coordinate(1, 4)


def test_unplaced_ship_is_placed_once() -> None:
    ship = Ship.of_type(ShipType.SUBMARINE)
    assert ship.length == 3
    assert not ship.is_placed
    assert ship.coordinates() == []

    ship.place(Coordinate(0, 0), Orientation.VERTICAL)
    assert ship.is_placed
    with pytest.raises(RuntimeError):
        ship.place(Coordinate(5, 5), Orientation.HORIZONTAL)


def test_ship_hit_and_sink() -> None:
    ship = Ship(ShipType.SUBMARINE.length, Coordinate(3, 3), Orientation.VERTICAL)
    for idx, coord in enumerate(ship.coordinates(), start=1):
        assert ship.receive_shot(coord) is True
        assert ship.is_sunk() is (idx == ship.length)


def test_repeated_hit_is_idempotent() -> None:
    ship = Ship(2, Coordinate(0, 0), Orientation.HORIZONTAL)
    assert ship.receive_shot(Coordinate(0, 0))
    assert ship.receive_shot(Coordinate(0, 0))
    assert ship.hit_segments() == [Coordinate(0, 0)]
    assert not ship.is_sunk()

    ship.receive_shot(Coordinate(1, 0))
    ship.receive_shot(Coordinate(1, 0))
    assert ship.is_sunk()


def test_miss_does_not_touch_ship() -> None:
    ship = Ship(2, Coordinate(0, 0), Orientation.HORIZONTAL)
    assert ship.receive_shot(Coordinate(0, 1)) is False
    assert ship.hit_segments() == []


def test_overlap_uses_every_cell() -> None:
    long_ship = Ship(5, Coordinate(0, 2), Orientation.HORIZONTAL)
    crossing = Ship(3, Coordinate(2, 0), Orientation.VERTICAL)
    apart = Ship(3, Coordinate(6, 0), Orientation.VERTICAL)
    assert long_ship.overlaps(crossing)
    assert crossing.overlaps(long_ship)
    assert not long_ship.overlaps(apart)


def test_copy_keeps_placement_but_not_hits() -> None:
    ship = Ship(2, Coordinate(4, 4), Orientation.VERTICAL)
    ship.receive_shot(Coordinate(4, 4))
    clone = ship.copy()
    assert clone.coordinates() == ship.coordinates()
    assert clone.hit_segments() == []
