from imdb_ratings.models import RatingRecord
from imdb_ratings.parsers import (
    format_rating,
    parse_episode_line,
    parse_episodes,
    parse_rating_line,
    parse_ratings,
)

from conftest import EPISODE_LINES, RATINGS_LINES


def test_rating_line_example():
    rec = parse_rating_line("tt0111161\t9.3\t2800000\t0")
    assert rec == RatingRecord("tt0111161", "9.3", "2800000")


def test_rating_is_normalized_to_one_decimal():
    assert format_rating("8") == "8.0"
    assert format_rating("6.96") == "7.0"
    assert format_rating("10") == "10.0"
    assert format_rating("abc") is None
    assert format_rating("nan") is None
    assert format_rating("1e30") is None


def test_rating_ties_round_up():
    assert format_rating("7.25") == "7.3"
    assert format_rating("0.25") == "0.3"
    assert format_rating("8.25") == "8.3"
    # 1.15 is stored just below the tie, so it goes down like toFixed(1)
    assert format_rating("1.15") == "1.1"
    assert parse_rating_line("tt1\t8.25\t10").rating == "8.3"


def test_rating_line_rejections():
    assert parse_rating_line("") is None
    assert parse_rating_line("\t9.0\t10") is None
    assert parse_rating_line("tt1\t\t10") is None
    assert parse_rating_line("tt1\t\\N\t10") is None
    assert parse_rating_line("tt1") is None
    assert parse_rating_line("tt1\tN/A\t10") is None


def test_rating_votes_default_to_zero():
    assert parse_rating_line("tt1\t6.1").votes == "0"
    assert parse_rating_line("tt1\t6.1\t").votes == "0"
    assert parse_rating_line("tt1\t6.1\t\\N").votes == "0"


def test_rating_line_strips_crlf():
    assert parse_rating_line("tt1\t6.1\t12\r\n") == RatingRecord("tt1", "6.1", "12")


def test_episode_line_example():
    assert parse_episode_line("tt0579539\ttt0903747\t1\t1") == (("tt0903747", "1", "1"), "tt0579539")


def test_episode_line_rejections():
    assert parse_episode_line("tt1\ttt2\t\\N\t1") is None
    assert parse_episode_line("tt1\ttt2\t1\t\\N") is None
    assert parse_episode_line("tt1\ttt2\t1") is None
    assert parse_episode_line("tt1\t\t1\t1") is None
    assert parse_episode_line("\ttt2\t1\t1") is None


def test_episode_keys_are_not_normalized():
    key, _ = parse_episode_line("tt1\ttt2\t01\t002")
    assert key == ("tt2", "01", "002")


def test_parse_ratings_skips_header_and_bad_lines():
    lines = [
        "tt9999999\t1.0\t1",  # header position, discarded even though it looks valid
        "tt1\t\\N\t5",
        "garbage",
        "tt2\t7.0\t5",
    ]
    out = parse_ratings(lines)
    assert out == {"tt2": RatingRecord("tt2", "7.0", "5")}


def test_parse_ratings_sample():
    out = parse_ratings(RATINGS_LINES, progress_every=1)
    assert set(out) == {"tt0111161", "tt0903747", "tt0579539", "tt0000001"}
    assert out["tt0000001"].votes == "0"


def test_parse_episodes_last_write_wins():
    lines = [
        "tconst\tparentTconst\tseasonNumber\tepisodeNumber",
        "tt100\ttt9\t1\t1",
        "tt101\ttt9\t1\t\\N",
        "tt102\ttt9\t1\t1",
    ]
    assert parse_episodes(lines) == {("tt9", "1", "1"): "tt102"}


def test_parse_episodes_sample():
    out = parse_episodes(EPISODE_LINES)
    assert out == {
        ("tt0903747", "1", "1"): "tt0579539",
        ("tt0903747", "1", "2"): "tt0999999",
    }


def test_empty_stream_gives_empty_mapping():
    assert parse_ratings([]) == {}
    assert parse_episodes(iter(["header only"])) == {}


def test_each_call_returns_a_new_mapping():
    a = parse_ratings(RATINGS_LINES)
    b = parse_ratings(RATINGS_LINES)
    assert a == b
    assert a is not b
