import json
import os

import pytest

from route_atlas.main import main, parse_mount

from classfile_writer import ClassFileWriter


@pytest.fixture
def classes_dir(tmp_path):
    writer = ClassFileWriter('com.example.Home')
    writer.add_method(
        'index', '()Ljava/lang/String;',
        annotations=[('io.jooby.annotations.GET', {'value': ['/']})],
        local_variables=[('this', 'Lcom/example/Home;', None, 0)]
    )
    package = tmp_path / 'classes' / 'com' / 'example'
    package.mkdir(parents=True)
    (package / 'Home.class').write_bytes(writer.to_bytes())
    return tmp_path / 'classes'


def test_parse_mount():
    mount = parse_mount('com.example.Users=/api')
    assert (mount.controller_type, mount.path_prefix) == ('com.example.Users', '/api')
    assert parse_mount('com.example.Users').path_prefix is None


def test_successful_run_writes_output(classes_dir, tmp_path):
    output = tmp_path / 'out'
    code = main(['-cp', str(classes_dir), '-m', 'com.example.Home=/v1', '-o', str(output)])
    assert code == 0
    operations = json.loads((output / 'operations.json').read_text(encoding='utf-8'))
    assert [(o['method'], o['pattern']) for o in operations] == [('GET', '/v1')]


def test_missing_classpath_entry(tmp_path):
    assert main(['-cp', str(tmp_path / 'nope'), '-m', 'com.example.Home']) == 1


def test_unknown_controller(classes_dir):
    classpath = os.pathsep.join([str(classes_dir), str(classes_dir)])
    assert main(['-cp', classpath, '-m', 'com.example.Missing']) == 1


def test_mount_is_required(classes_dir):
    with pytest.raises(SystemExit):
        main(['-cp', str(classes_dir)])
