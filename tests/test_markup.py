import re

import pytest

from respond.config import PipelineConfig
from respond.markup import MarkupRequest, join_url, render
from respond.planner import plan_nominal

ALL = plan_nominal("growth", PipelineConfig())


def srcset_widths(fragment, tag_start):
    line = next(l for l in fragment.splitlines() if l.strip().startswith(tag_start))
    srcset = re.search(r'srcset="([^"]*)"', line).group(1)
    return [int(w) for w in re.findall(r" (\d+)w", srcset)]


@pytest.mark.parametrize("prefix,base,expected", [
    ("", "img/responsive", "/img/responsive"),
    ("", "/img/responsive/", "/img/responsive"),
    ("/app", "img/responsive", "/app/img/responsive"),
    ("/app/", "/img/responsive/", "/app/img/responsive"),
    ("/", "", ""),
])
def test_join_url(prefix, base, expected):
    assert join_url(prefix, base) == expected


def test_full_fragment():
    html = render(MarkupRequest(base_name="growth", alt="Growth chart", loading="lazy"), ALL)
    lines = html.splitlines()
    assert lines[0] == "<picture>"
    assert lines[1].startswith('    <source srcset="/img/responsive/growth-1400.avif 1400w, ')
    assert lines[1].endswith('/img/responsive/growth-576.avif 576w" type="image/avif">')
    assert lines[2].endswith('type="image/webp">')
    assert lines[3] == (
        '    <img src="/img/responsive/growth.jpg" srcset="'
        "/img/responsive/growth-1400.jpg 1400w, /img/responsive/growth-1200.jpg 1200w, "
        "/img/responsive/growth-992.jpg 992w, /img/responsive/growth-768.jpg 768w, "
        '/img/responsive/growth-576.jpg 576w" alt="Growth chart" loading="lazy">'
    )
    assert lines[4] == "</picture>"


def test_avif_before_webp_and_widths_descend():
    html = render(MarkupRequest(base_name="growth"), ALL)
    assert html.index('type="image/avif"') < html.index('type="image/webp"')
    for tag in ("<source", "<img"):
        assert srcset_widths(html, tag) == [1400, 1200, 992, 768, 576]


def test_format_toggles():
    html = render(MarkupRequest(base_name="growth", include_avif=False), ALL)
    assert "image/avif" not in html
    assert "image/webp" in html
    html = render(MarkupRequest(base_name="growth", include_avif=False, include_webp=False), ALL)
    assert "<source" not in html
    assert "<img" in html


def test_user_text_is_escaped():
    html = render(MarkupRequest(
        base_name="growth",
        alt='Say "hi" <b>',
        id='x"y',
        css_class="a<b",
        loading='lazy" onload="alert(1)',
    ), ALL)
    assert 'alt="Say &quot;hi&quot; &lt;b&gt;"' in html
    assert 'id="x&quot;y"' in html
    assert 'class="a&lt;b"' in html
    assert 'loading="lazy&quot; onload=&quot;alert(1)"' in html
    assert "<b>" not in html


def test_optional_attributes_in_order():
    html = render(MarkupRequest(base_name="growth", alt="a", id="hero", css_class="img-fluid", loading="eager"), ALL)
    img = html.splitlines()[-2]
    assert img.index(" src=") < img.index(" srcset=") < img.index(" alt=") < img.index(" id=") \
        < img.index(" class=") < img.index(" loading=")
    html = render(MarkupRequest(base_name="growth", id="  ", css_class=""), ALL)
    assert " id=" not in html
    assert " class=" not in html
    assert ' alt=""' in html


@pytest.mark.parametrize("base", ["", "   "])
def test_blank_source_renders_nothing(base):
    assert render(MarkupRequest(base_name=base), ALL) == ""


def test_missing_entries_drop_out_of_srcset():
    available = [s for s in ALL if not (s.format == "webp" and s.target_width == 992)]
    html = render(MarkupRequest(base_name="growth"), available)
    assert srcset_widths(html, '<source srcset="/img/responsive/growth-1400.webp') == [1400, 1200, 768, 576]
    assert "growth-992.avif 992w" in html
    assert "growth-992.jpg 992w" in html


def test_fallback_without_raster_breakpoints():
    specs = plan_nominal("growth", PipelineConfig(formats=("webp",)))
    html = render(MarkupRequest(base_name="growth"), specs)
    assert '<img src="/img/responsive/growth.jpg" srcset="/img/responsive/growth.jpg 1024w"' in html


def test_fallback_without_standard_uses_widest_raster():
    specs = [s for s in ALL if not s.standard]
    html = render(MarkupRequest(base_name="growth"), specs)
    assert '<img src="/img/responsive/growth-1400.jpg"' in html


def test_nothing_rasters_nothing_rendered():
    specs = [s for s in ALL if s.format == "webp"]
    assert render(MarkupRequest(base_name="growth"), specs) == ""


def test_path_prefix_applied():
    html = render(MarkupRequest(base_name="growth", path_prefix="/shop/"), ALL)
    assert 'src="/shop/img/responsive/growth.jpg"' in html
    assert "//" not in html
