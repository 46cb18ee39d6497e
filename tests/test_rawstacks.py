from rawstacks import (Profile, RawParser, Recording, State, parse_raw,
                       sanitize_frame)


BLOCK_A = [
    "myapp 111/222 [0] 5.123456: cpu-clock:",
    "\t  4005d0 foo (mod)",
    "\t  4006a2 bar (mod)",
    "",
]

BLOCK_B = [
    "myapp 111/222 [0] 5.623456: cpu-clock:",
    "\t  4005d0 baz+0x10 (/usr/bin/myapp)",
    "\t  4006a2 bar+0x22 (/usr/bin/myapp)",
    "",
]

BLOCK_C = [
    "other 333/333 [1] 6.000100: cpu-clock:",
    "\tffffffff8100 do_idle ([kernel.kallsyms])",
    "",
]


# ── Frame sanitizer ─────────────────────────────────────────────

def test_sanitize_clean_label_unchanged():
    for name in ['main', 'std::vector::push_back', 'foo+0x10', '[unknown]']:
        assert sanitize_frame(name) == name


def test_sanitize_drops_process_marker():
    assert sanitize_frame('(myapp)') is None
    assert sanitize_frame('(anything else; <here>)', 'mod') is None


def test_sanitize_strips_noise():
    assert sanitize_frame('ns::Foo<int>::bar(int, char)') == 'ns::Fooint::bar'
    assert sanitize_frame('a;b;c') == 'a:b:c'
    assert sanitize_frame('"quoted" \'name\'') == 'quoted name'
    assert sanitize_frame('func(x) const') == 'func'


# ── Parser ─────────────────────────────────────────────────────

def test_single_block_builds_reversed_path():
    profile, warnings = parse_raw(BLOCK_A)
    assert warnings == []
    root = profile.root
    assert root.value == 1
    assert list(root.children) == ['myapp']
    assert list(root.find('myapp').children) == ['bar']
    assert list(root.find('myapp', 'bar').children) == ['foo']
    for path in [('myapp',), ('myapp', 'bar'), ('myapp', 'bar', 'foo')]:
        node = root.find(*path)
        assert node.value == 1
        assert node.diff == 1
        assert node.timeshare == 1


def test_blocks_share_common_frames():
    profile, _ = parse_raw(BLOCK_A + BLOCK_B + BLOCK_C)
    root = profile.root
    assert root.value == 3
    assert list(root.children) == ['myapp', 'other']
    assert root.find('myapp').value == 2
    assert list(root.find('myapp').children) == ['bar', 'bar+0x22']
    assert root.find('other', 'do_idle').value == 1


def test_stray_line_is_reported_and_skipped():
    clean, _ = parse_raw(BLOCK_A + BLOCK_C)
    noisy, warnings = parse_raw(BLOCK_A + ["garbage here"] + BLOCK_C)
    assert clean.serialize() == noisy.serialize()
    assert len(warnings) == 1
    assert "line 5" in warnings[0]
    assert "garbage here" in warnings[0]


def test_comments_and_extra_blank_lines_are_ignored():
    lines = ["# header comment", "", ""] + BLOCK_A + ["", "# trailing"]
    profile, warnings = parse_raw(lines)
    assert warnings == []
    assert profile.root.value == 1


def test_process_marker_frames_are_dropped():
    lines = [
        "myapp 1/1 [0] 1.000001",
        "\t  0 foo (mod)",
        "\t  0 (myapp) (mod)",
        "",
    ]
    profile, _ = parse_raw(lines)
    assert list(profile.root.find('myapp').children) == ['foo']
    assert profile.root.find('myapp', 'foo').children == {}


def test_frame_outside_block_is_reported():
    profile, warnings = parse_raw(["\t  4005d0 foo (mod)"])
    assert profile.root.value == 0
    assert len(warnings) == 1


def test_header_inside_block_discards_unfinished_block():
    lines = ["myapp 1/1 [0] 1.000001", "\t  0 lost (mod)"] + BLOCK_A
    profile, warnings = parse_raw(lines)
    assert profile.root.value == 1
    assert profile.root.find('myapp', 'lost') is None
    assert len(warnings) == 1


def test_unterminated_block_at_end_is_discarded():
    profile, warnings = parse_raw(BLOCK_A + BLOCK_C[:2])
    assert profile.root.value == 1
    assert 'end of input' in warnings[0]


def test_crlf_lines():
    profile, warnings = parse_raw([line + '\r' for line in BLOCK_A])
    assert warnings == []
    assert profile.root.find('myapp', 'bar', 'foo').value == 1


def test_state_transitions():
    parser = RawParser()
    assert parser.state is State.AWAITING_BLOCK
    parser.feed(BLOCK_A[0])
    assert parser.state is State.IN_BLOCK
    parser.feed(BLOCK_A[1])
    assert parser.state is State.IN_BLOCK
    parser.feed("")
    assert parser.state is State.AWAITING_BLOCK
    assert isinstance(parser.finish(), Profile)


# ── Live mode ──────────────────────────────────────────────────

def test_live_groups_by_second():
    recording, warnings = parse_raw(BLOCK_A + BLOCK_B + BLOCK_C, live=True)
    assert warnings == []
    assert isinstance(recording, Recording)
    assert list(recording.profiles) == ['5', '6']
    assert recording.profiles['5'].root.value == 2
    assert recording.profiles['6'].root.value == 1


def test_live_serialize_maps_timestamps_to_trees():
    recording, _ = parse_raw(BLOCK_A + BLOCK_C, live=True)
    out = recording.serialize()
    assert set(out) == {'5', '6'}
    assert out['5']['name'] == 'root'
    assert out['5']['tottime'] is None
    assert out['6']['children'][0]['name'] == 'other'


def test_recording_reuses_profiles():
    recording = Recording()
    assert recording.get_profile('1') is recording.get_profile('1')
    assert recording.get_profile('1') is not recording.get_profile('2')
