"""End-to-end extraction over compiled controllers."""
import json

import pytest

from route_atlas.factory.analyzer_factory import AnalyzerFactory
from route_atlas.models.domain_models import MountReference
from route_atlas.models.errors import ParameterTypeNotFound, TypeNotFound

from builders import annotation, controller, enum_class, handler, jaxrs, jooby, nullable, param
from classfile_writer import ClassFileWriter


def users_controller():
    return controller(
        'com.example.Users',
        handler('find', [param('id', 'Ljava/lang/String;', jooby('PathParam'))],
                returns='Lcom/example/User;', annotations=[jooby('GET', value=['/{id}'])]),
        handler('signup', [
            param('name', 'Ljava/lang/String;', jooby('FormParam')),
            param('age', 'I', jooby('FormParam')),
        ], annotations=[jooby('POST')]),
        handler('helper', [param('unused', 'Ljava/lang/String;')]),
        annotations=[jooby('Path', value=['/users'])]
    )


def extract(*classes, mounts=None):
    analyzer = AnalyzerFactory.create_in_memory_analyzer(classes)
    mounts = mounts or [MountReference(classes[-1].name)]
    return analyzer, analyzer.parse_mounts(mounts)


def test_path_parameter_scenario():
    _, operations = extract(users_controller())
    find = next(o for o in operations if o.operation_id == 'find')
    assert find.method == 'GET'
    assert find.pattern == '/users/{id}'
    assert [p.to_dict() for p in find.parameters] == [
        {'name': 'id', 'in': 'path', 'type': 'java.lang.String', 'required': True}
    ]
    assert find.request_body is None
    assert find.response.java_types == ('com.example.User',)


def test_form_scenario():
    _, operations = extract(users_controller())
    signup = next(o for o in operations if o.operation_id == 'signup')
    assert signup.method == 'POST'
    assert signup.pattern == '/users'
    body = signup.request_body
    assert body.content_type == 'multipart/form-data'
    assert body.schema['properties'] == {
        'name': {'type': 'string'},
        'age': {'type': 'integer', 'format': 'int32'},
    }
    assert body.schema['required'] == ['name', 'age']


def test_unannotated_methods_are_not_operations():
    _, operations = extract(users_controller())
    assert sorted(o.operation_id for o in operations) == ['find', 'signup']


def test_bare_path_marker_defaults_to_get():
    items = controller(
        'com.example.Items',
        handler('all', annotations=[jooby('Path', value='/all')]),
        annotations=[jooby('Path', value='/items')]
    )
    operation, = extract(items)[1]
    assert (operation.method, operation.pattern) == ('GET', '/items/all')


def test_most_derived_override_wins():
    base = controller('com.example.Base', handler('list', annotations=[jooby('GET', value='/old')]))
    child = controller('com.example.Child', handler('list', annotations=[jooby('GET', value='/new')]),
                       superclass='com.example.Base')
    operations = extract(base, child)[1]
    assert [o.pattern for o in operations] == ['/new']
    assert operations[0].controller == 'com.example.Child'


def test_suspend_handler_response_type():
    orders = controller('com.example.Orders', handler(
        'find',
        [param('id', 'J', jooby('PathParam')), param('$completion', 'Lkotlin/coroutines/Continuation;')],
        returns='Ljava/lang/Object;',
        signature='(JLkotlin/coroutines/Continuation<-Lcom/example/Order;>;)Ljava/lang/Object;',
        annotations=[jooby('GET', value='/orders/{id}')]
    ))
    operation, = extract(orders)[1]
    assert operation.response.java_types == ('com.example.Order',)
    assert [p.name for p in operation.parameters] == ['id']


def test_mount_prefix_and_media_types():
    api = controller(
        'com.example.Api',
        handler('ping', returns='Ljava/lang/String;',
                annotations=[jaxrs('GET'), jaxrs('Path', value='/ping'), jaxrs('Produces', value=['text/plain'])]),
        handler('gone', annotations=[jooby('DELETE'), annotation('java.lang.Deprecated')]),
        annotations=[jaxrs('Path', value='/api')]
    )
    operations = extract(api, mounts=[MountReference('com.example.Api', '/v2')])[1]
    ping, gone = operations
    assert ping.pattern == '/v2/api/ping'
    assert ping.produces == ('text/plain',)
    assert not ping.deprecated
    assert (gone.method, gone.pattern, gone.deprecated) == ('DELETE', '/v2/api', True)


def test_mounts_processed_in_order():
    a = controller('com.example.A', handler('a', annotations=[jooby('GET', value='/a')]))
    b = controller('com.example.B', handler('b', annotations=[jooby('GET', value='/b')]))
    operations = extract(a, b, mounts=[MountReference('com.example.B'), MountReference('com.example.A')])[1]
    assert [o.pattern for o in operations] == ['/b', '/a']


def test_extraction_is_deterministic():
    analyzer, first = extract(users_controller())
    second = analyzer.parse_mounts([MountReference('com.example.Users')])
    assert first == second
    assert [o.to_dict() for o in first] == [o.to_dict() for o in second]


def test_unknown_mount_aborts_pass():
    analyzer = AnalyzerFactory.create_in_memory_analyzer([users_controller()])
    with pytest.raises(TypeNotFound):
        analyzer.parse_mounts([MountReference('com.example.Users'), MountReference('com.example.Missing')])


def test_missing_debug_info_aborts_pass():
    broken = controller('com.example.Broken', handler(
        'find', [param('id', 'J', jooby('PathParam'))], annotations=[jooby('GET')], local_names=['x']
    ))
    with pytest.raises(ParameterTypeNotFound):
        extract(broken)


def test_statistics():
    analyzer, operations = extract(users_controller())
    stats = analyzer.generate_statistics(operations)
    assert stats['total_operations'] == 2
    assert stats['total_controllers'] == 1
    assert stats['http_methods'] == {'GET': 1, 'POST': 1}
    assert stats['parameter_locations'] == {'path': 1}
    assert stats['request_bodies']['content_types'] == {'multipart/form-data': 1}
    assert stats['deprecated_operations'] == 0


def test_export_results(tmp_path):
    analyzer, operations = extract(users_controller())
    analyzer.export_results(operations, tmp_path / 'out')

    exported = json.loads((tmp_path / 'out' / 'operations.json').read_text(encoding='utf-8'))
    assert [o['pattern'] for o in exported] == ['/users/{id}', '/users']
    assert json.loads((tmp_path / 'out' / 'statistics.json').read_text(encoding='utf-8'))['total_operations'] == 2
    assert (tmp_path / 'out' / 'routes.html').is_file()


def test_classpath_analyzer_over_class_files(tmp_path):
    writer = ClassFileWriter('com.example.Users')
    writer.annotations.append(('io.jooby.annotations.Path', {'value': ['/users']}))
    writer.add_method(
        'find', '(Ljava/lang/String;Ljava/lang/String;)Lcom/example/User;',
        annotations=[('io.jooby.annotations.GET', {'value': ['/{id}']})],
        parameter_annotations=[[('io.jooby.annotations.PathParam', {})],
                               [('io.jooby.annotations.QueryParam', {})]],
        invisible_parameter_annotations=[[], [('org.jetbrains.annotations.Nullable', {})]],
        local_variables=[
            ('this', 'Lcom/example/Users;', None, 0),
            ('id', 'Ljava/lang/String;', None, 1),
            ('fields', 'Ljava/lang/String;', None, 2),
        ]
    )
    package = tmp_path / 'com' / 'example'
    package.mkdir(parents=True)
    (package / 'Users.class').write_bytes(writer.to_bytes())

    analyzer = AnalyzerFactory.create_default_analyzer([tmp_path])
    operation, = analyzer.parse_mounts([MountReference('com.example.Users')])
    assert (operation.method, operation.pattern) == ('GET', '/users/{id}')
    assert [(p.name, p.in_, p.required) for p in operation.parameters] == [
        ('id', 'path', True), ('fields', 'query', False)
    ]


def test_unsupported_platform():
    with pytest.raises(ValueError):
        AnalyzerFactory.create_analyzer('dotnet', [])


def test_nullable_marker_on_query():
    search = controller('com.example.Search', handler(
        'search', [param('q', 'Ljava/lang/String;', jooby('QueryParam'), invisible=[nullable()])],
        annotations=[jooby('GET')]
    ))
    operation, = extract(search)[1]
    assert not operation.parameters[0].required


def test_enum_form_field_is_documented():
    accounts = controller('com.example.Accounts', handler('signup', [
        param('name', 'Ljava/lang/String;', jooby('FormParam')),
        param('status', 'Lcom/example/Status;', jooby('FormParam')),
    ], annotations=[jooby('POST', value='/signup')]))
    operation, = extract(enum_class('com.example.Status'), accounts)[1]
    assert operation.pattern == '/signup'
    assert operation.request_body.schema['properties'] == {
        'name': {'type': 'string'},
        'status': {'type': 'string'},
    }
    assert operation.request_body.schema['required'] == ['name', 'status']


def test_enum_class_file_is_recognized(tmp_path):
    status = ClassFileWriter('com.example.Status', superclass='java.lang.Enum', access=0x0001 | 0x0010 | 0x4000)
    accounts = ClassFileWriter('com.example.Accounts')
    accounts.add_method(
        'filter', '(Lcom/example/Status;)V',
        annotations=[('io.jooby.annotations.POST', {})],
        parameter_annotations=[[('io.jooby.annotations.FormParam', {})]],
        local_variables=[('this', 'Lcom/example/Accounts;', None, 0), ('status', 'Lcom/example/Status;', None, 1)]
    )
    package = tmp_path / 'com' / 'example'
    package.mkdir(parents=True)
    (package / 'Status.class').write_bytes(status.to_bytes())
    (package / 'Accounts.class').write_bytes(accounts.to_bytes())

    operation, = AnalyzerFactory.create_default_analyzer([tmp_path]).parse_mounts(
        [MountReference('com.example.Accounts')])
    assert operation.request_body.java_type is None
    assert operation.request_body.schema['properties'] == {'status': {'type': 'string'}}
