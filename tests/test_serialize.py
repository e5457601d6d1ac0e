import pytest
import yaml

from stencil.stencil_serialize import deserialize, detect_format, load_file

def test_json_deserialize():
    assert deserialize(b'{"a": [1, 2]}', fmt="json") == {"a": [1, 2]}

def test_yaml_deserialize():
    assert deserialize("a: 1\nb: [x, y]\n", fmt="yaml") == {"a": 1, "b": ["x", "y"]}

def test_yaml_with_json_format_fallback():
    # YAML payload in a .json file still loads via fallback to YAML
    assert deserialize("a: 1\n", fmt="json") == {"a": 1}

def test_sniffing_without_format():
    assert deserialize('{"x": 1}') == {"x": 1}
    assert deserialize("x: 1") == {"x": 1}

def test_broken_yaml_raises():
    with pytest.raises(yaml.YAMLError):
        deserialize("a: [unclosed\n", fmt="yaml")

@pytest.mark.parametrize("path,expected", [
    ("m.json", "json"),
    ("m.yaml", "yaml"),
    ("m.YML", "yaml"),
    ("m.txt", None),
])
def test_detect_format_by_extension(path, expected):
    assert detect_format(path) == expected

def test_load_file_uses_extension(tmp_path):
    p = tmp_path / "m.yml"
    p.write_text("k: v\n", encoding="utf-8")
    assert load_file(str(p)) == {"k": "v"}
