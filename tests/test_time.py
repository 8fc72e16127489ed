"""Tests for the sgpjax.time module."""

from datetime import datetime, timedelta, timezone
from math import pi

import pytest
from sgp4.propagation import gstime

from sgpjax.time import (
    caldate_to_jd,
    datetime_to_jd,
    days_since_1950,
    gmst,
    minutes_since,
    thetag,
)


class TestCalendarToJulian:
    def test_j2000_midnight(self) -> None:
        assert caldate_to_jd(2000, 1, 1) == 2451544.5

    def test_1950_reference(self) -> None:
        # 1950 January 0.0 is 1949 December 31 0h
        assert caldate_to_jd(1949, 12, 31) == 2433281.5

    def test_leap_day(self) -> None:
        assert caldate_to_jd(2024, 3, 1) - caldate_to_jd(2024, 2, 28) == 2.0


class TestDatetimeToJulian:
    def test_split(self) -> None:
        jd, frac = datetime_to_jd(datetime(2008, 9, 20, 12, 0, 0))
        assert jd == caldate_to_jd(2008, 9, 20)
        assert frac == pytest.approx(0.5, abs=1e-15)

    def test_aware_datetime_converted_to_utc(self) -> None:
        est = timezone(timedelta(hours=-5))
        aware = datetime(2006, 6, 20, 19, 0, 0, tzinfo=est)
        assert datetime_to_jd(aware) == datetime_to_jd(datetime(2006, 6, 21, 0, 0, 0))

    def test_microseconds(self) -> None:
        _, frac = datetime_to_jd(datetime(2006, 6, 20, 0, 0, 0, 500000))
        assert frac == pytest.approx(0.5 / 86400.0, abs=1e-15)

    def test_days_since_1950(self) -> None:
        assert days_since_1950(datetime(1950, 1, 1)) == 1.0
        assert days_since_1950(datetime(1949, 12, 31, 6)) == pytest.approx(0.25)


class TestMinutesSince:
    def test_forward(self) -> None:
        epoch = datetime(2008, 9, 20, 12, 25, 40)
        assert minutes_since(epoch, epoch + timedelta(hours=2)) == pytest.approx(120.0)

    def test_backward(self) -> None:
        epoch = datetime(2008, 9, 20, 12, 25, 40)
        assert minutes_since(epoch, epoch - timedelta(seconds=90)) == pytest.approx(-1.5)

    def test_mixed_naive_and_aware(self) -> None:
        epoch = datetime(2008, 9, 20, 12, 0, 0)
        later = datetime(2008, 9, 20, 13, 0, 0, tzinfo=timezone.utc)
        assert minutes_since(epoch, later) == pytest.approx(60.0)


class TestSiderealTime:
    @pytest.mark.parametrize("jd", [2444514.48708465, 2453907.76535463, 2454730.01782528, 2460000.25])
    def test_gmst_matches_reference(self, jd) -> None:
        assert gmst(jd) == pytest.approx(gstime(jd), abs=1e-12)

    def test_gmst_split_date(self) -> None:
        assert gmst(2454729.5, 0.51782528) == pytest.approx(gmst(2454730.01782528), abs=1e-9)

    def test_gmst_range(self) -> None:
        for k in range(50):
            value = gmst(2451545.0 + 37.3 * k)
            assert 0.0 <= value < 2.0 * pi

    def test_thetag_at_1950(self) -> None:
        assert thetag(0.0) == pytest.approx(1.72944494, abs=1e-12)

    def test_thetag_range(self) -> None:
        for ds50 in (-100.5, 0.25, 11000.75, 20629.26535463):
            value = thetag(ds50)
            assert 0.0 <= value < 2.0 * pi

    def test_legacy_and_vallado_agree(self) -> None:
        # The two sidereal expressions stay within a milliradian
        jd = 2453907.76535463
        assert thetag(jd - 2433281.5) == pytest.approx(gmst(jd), abs=1e-3)
