from jokko.services.recommendation_notes import aggregate_tags, parse_note


def test_parse_liked_and_watch():
    parsed = parse_note("Liked: A, B | Watch: C")
    assert parsed.liked == ["A", "B"]
    assert parsed.watch == ["C"]


def test_parse_without_markers():
    parsed = parse_note("Great plumber, came on time")
    assert parsed.liked == []
    assert parsed.watch == []


def test_parse_none_note():
    parsed = parse_note(None)
    assert parsed.liked == [] and parsed.watch == []


def test_markers_are_order_independent():
    parsed = parse_note("Watch: Late sometimes | Liked: Friendly")
    assert parsed.liked == ["Friendly"]
    assert parsed.watch == ["Late sometimes"]


def test_markers_are_case_insensitive_and_embedded():
    parsed = parse_note("Called him twice. liked: Fast ,  , Clean|WATCH: Price")
    assert parsed.liked == ["Fast", "Clean"]
    assert parsed.watch == ["Price"]


def test_aggregate_orders_by_frequency_then_first_seen():
    notes = [
        "Liked: Fast, Cheap",
        "Liked: Fast",
        "Liked: Polite, Cheap, Tidy",
        "Liked: Tidy",
    ]
    top_likes, top_watch = aggregate_tags(notes)
    # Fast=2, Cheap=2, Tidy=2, Polite=1; ties keep first-seen order
    assert top_likes == ["Fast", "Cheap", "Tidy"]
    assert top_watch == []


def test_aggregate_labels_are_case_sensitive():
    top_likes, _ = aggregate_tags(["Liked: professional", "Liked: Professional, Professional"])
    assert top_likes == ["Professional", "professional"]


def test_aggregate_watch_capped_at_two():
    _, top_watch = aggregate_tags(["Watch: a, b, c", "Watch: c"])
    assert top_watch == ["c", "a"]


def test_aggregate_skips_empty_notes():
    assert aggregate_tags([None, "", "no tags"]) == ([], [])
