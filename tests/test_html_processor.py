import pytest

from html_processor import (TextSegment, build_chunks, clean_model_output, extract_segments,
                            reassemble_html, validate_translation)
from conftest import make_page

SCENARIO = '<html><body><p>Hello world</p><script>var x="Hola";</script></body></html>'

SAMPLES = [
    SCENARIO,
    make_page("<div class=\"hero\">\n  <h1>Meet  singles\n near you</h1>\n  <p>Join &amp; start today</p>\n</div>"),
    "plain text with no tags at all",
    "<p>a < b and c > d</p><!-- a comment > with a bracket --><p>after</p>",
    "<a title=\"1 > 0\" href='/x'>link text</a> tail",
    "<pre>keep\n  this</pre><p>x</p><code>f(x)</code><p>y</p>",
    "<div>unterminated <b",
]


def _texts(segments):
    return [s.text for s in segments]


def test_scenario_yields_single_segment():
    segments = extract_segments(SCENARIO)

    assert _texts(segments) == ["Hello world"]
    assert SCENARIO[segments[0].start:segments[0].end] == "Hello world"


@pytest.mark.parametrize("content", SAMPLES)
def test_segments_match_their_offsets_in_order(content):
    segments = extract_segments(content)

    previous_end = 0
    for segment in segments:
        assert content[segment.start:segment.end] == segment.text
        assert segment.start >= previous_end
        assert segment.text.strip()
        previous_end = segment.end


@pytest.mark.parametrize("content", SAMPLES)
def test_no_op_reassembly_is_identical(content):
    segments = extract_segments(content)
    for segment in segments:
        segment.translated_text = segment.text

    assert reassemble_html(content, segments) == content


def test_untranslated_segments_reassemble_identically():
    content = SAMPLES[1]
    assert reassemble_html(content, extract_segments(content)) == content


def test_script_and_style_text_never_extracted():
    content = ("<style>.note:before { content: 'Read more'; }</style>"
               "<p>Visible</p><SCRIPT type=\"text/javascript\">document.write('Welcome home');</SCRIPT>")

    texts = _texts(extract_segments(content))

    assert texts == ["Visible"]
    assert not any("Welcome" in text or "Read more" in text for text in texts)


def test_code_and_pre_blocks_are_skipped():
    texts = _texts(extract_segments(SAMPLES[5]))
    assert texts == ["x", "y"]


def test_nested_tags_inside_pre_are_skipped():
    content = "<pre><b>bold</b> and <i>more</i></pre><p>outside</p>"
    assert _texts(extract_segments(content)) == ["outside"]


def test_whitespace_only_runs_are_dropped():
    content = "<ul>\n  <li>One</li>\n  <li>Two</li>\n</ul>"
    assert _texts(extract_segments(content)) == ["One", "Two"]


def test_comments_and_quoted_brackets_stay_in_tags():
    assert _texts(extract_segments(SAMPLES[3])) == ["a < b and c > d", "after"]
    assert _texts(extract_segments(SAMPLES[4])) == ["link text", " tail"]


def test_unclosed_script_consumes_rest_of_document():
    content = "<p>before</p><script>var a = 1;<p>never seen</p>"
    assert _texts(extract_segments(content)) == ["before"]


def test_self_closing_skip_tag_does_not_open_block():
    content = "<p>one</p><script src=\"a.js\"/><p>two</p>"
    assert _texts(extract_segments(content)) == ["one", "two"]


def test_source_text_is_single_trimmed_line():
    segment = extract_segments("<h1>\n  Meet  singles\n near you </h1>")[0]
    assert segment.source_text == "Meet singles near you"


def test_rendered_keeps_surrounding_whitespace():
    segment = TextSegment(0, 12, "\n  Hello  \n", translated_text="Hola")
    assert segment.rendered() == "\n  Hola  \n"


def _segments(*texts):
    segments, position = [], 0
    for text in texts:
        segments.append(TextSegment(position, position + len(text), text))
        position += len(text) + 5
    return segments


def test_chunks_partition_segments_in_order():
    segments = _segments(*["x" * size for size in (30, 50, 20, 70, 10, 40)])

    chunks = build_chunks(segments, 100)

    assert [segment for chunk in chunks for segment in chunk] == segments
    assert all(sum(len(s.text) for s in chunk) <= 100 for chunk in chunks)
    assert [len(chunk) for chunk in chunks] == [3, 2, 1]


def test_oversized_segment_gets_its_own_chunk():
    segments = _segments("a" * 10, "b" * 500, "c" * 10)

    chunks = build_chunks(segments, 100)

    assert [[s.text[0] for s in chunk] for chunk in chunks] == [["a"], ["b"], ["c"]]


def test_zero_chunk_size_puts_each_segment_alone():
    segments = _segments("a" * 10, "b" * 20, "c" * 30)

    chunks = build_chunks(segments, 0)

    assert [len(chunk) for chunk in chunks] == [1, 1, 1]


def test_chunking_is_deterministic():
    segments = extract_segments(make_page("".join(f"<p>Paragraph number {i}</p>" for i in range(200))))

    first = build_chunks(segments, 300)
    second = build_chunks(segments, 300)

    assert [[s.start for s in chunk] for chunk in first] == [[s.start for s in chunk] for chunk in second]


def test_reassembly_handles_length_changes():
    content = "<p>Hi</p><p>Bye</p><p>Ok</p>"
    segments = extract_segments(content)
    for segment, translation in zip(segments, ["Bonjour tout le monde", "", "D'accord"]):
        segment.translated_text = translation or None

    assert reassemble_html(content, segments) == "<p>Bonjour tout le monde</p><p>Bye</p><p>D'accord</p>"


def test_scenario_reassembly_keeps_script_verbatim():
    segments = extract_segments(SCENARIO)
    segments[0].translated_text = "Hola mundo"

    result = reassemble_html(SCENARIO, segments)

    assert result == '<html><body><p>Hola mundo</p><script>var x="Hola";</script></body></html>'


def test_overlapping_segments_are_rejected():
    segments = [TextSegment(0, 5, "hello"), TextSegment(3, 8, "lo wo")]
    with pytest.raises(ValueError):
        reassemble_html("hello world", segments)


def test_clean_model_output_strips_fences_and_prose():
    page = make_page("<p>Hola</p>")
    answer = f"Here is your translation:\n```html\n{page}```\nLet me know if you need changes."

    assert clean_model_output(answer) == page.strip()


def test_clean_model_output_without_doctype_uses_html_tag():
    answer = "Sure! <html><body><p>Hola</p></body></html> Done."
    assert clean_model_output(answer) == "<html><body><p>Hola</p></body></html>"


def test_clean_model_output_leaves_clean_document_alone():
    page = make_page("<p>Hola</p>").strip()
    assert clean_model_output(page) == page


def test_validation_requires_html_tags():
    result = validate_translation("<body>" + "x" * 300 + "</body>", "es")
    assert not result
    assert "HTML structure" in result.reason


def test_validation_requires_minimum_length():
    result = validate_translation("<html><body>Hola</body></html>", "es")
    assert not result
    assert "too short" in result.reason


def test_validation_strict_language_needs_script():
    english = make_page("<p>Hello world, this page was not translated</p>")
    russian = make_page("<p>Привет, мир</p>")

    assert not validate_translation(english, "ru")
    assert validate_translation(russian, "ru")


def test_validation_skips_script_check_for_latin_languages():
    assert validate_translation(make_page("<p>Hello</p>"), "es")
    assert validate_translation(make_page("<p>Hello</p>"), "vi")
