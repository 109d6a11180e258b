from datetime import datetime
from typing import Annotated

import pytest

from beanbind import ApplicationContext, ApplicationContextAware, Autowired, Lifetime, Qualifier
from community.application import create_application_context, main
from community.config import SimpleDateFormat
from community.dao import AlphaDao, HibernateAlphaDao, MyBatisAlphaDao
from community.service import AlphaService


@pytest.fixture
def context():
    ctx = create_application_context()
    yield ctx
    ctx.close()


def test_context_prints_identity_and_start(context, capsys):
    print(context)

    out = capsys.readouterr().out
    assert out.startswith("ApplicationContext@")
    assert ", started on " in out


def test_by_type_lookup_returns_primary_repository(context):
    alpha_dao = context.get_bean(AlphaDao)

    assert isinstance(alpha_dao, MyBatisAlphaDao)
    assert alpha_dao.select() == "MyBatis"


def test_by_name_lookup_returns_named_repository(context):
    alpha_dao = context.get_bean("alpha_hibernate", AlphaDao)

    assert isinstance(alpha_dao, HibernateAlphaDao)
    assert alpha_dao.select() == "Hibernate"


def test_both_repositories_are_registered(context):
    assert set(context.get_beans_of_type(AlphaDao)) == {"alpha_hibernate", "my_batis_alpha_dao"}


def test_service_is_prototype_and_not_created_on_startup(capsys):
    with create_application_context() as ctx:
        assert ctx.is_prototype("alpha_service")
        assert "AlphaService" not in capsys.readouterr().out


def test_prototype_service_is_constructed_then_initialized_per_lookup(context, capsys):
    first = context.get_bean(AlphaService)
    second = context.get_bean(AlphaService)

    assert first is not second
    assert capsys.readouterr().out.splitlines() == [
        "instance AlphaService",
        "init AlphaService",
        "instance AlphaService",
        "init AlphaService",
    ]


def test_prototype_service_is_never_destroyed(capsys):
    ctx = create_application_context()
    ctx.get_bean(AlphaService)
    ctx.close()

    assert "destroy AlphaService" not in capsys.readouterr().out


def test_singleton_service_is_destroyed_once_on_close(capsys):
    ctx = ApplicationContext("community.dao")
    ctx.register(AlphaService, AlphaService, lifetime=Lifetime.SINGLETON)

    assert ctx.get_bean(AlphaService) is ctx.get_bean(AlphaService)
    ctx.close()

    assert capsys.readouterr().out.splitlines() == [
        "instance AlphaService",
        "init AlphaService",
        "destroy AlphaService",
    ]


def test_service_uses_primary_repository(context):
    assert context.get_bean(AlphaService).find() == "MyBatis"


def test_configuration_bean_formats_dates(context):
    date_format = context.get_bean(SimpleDateFormat)

    assert date_format is context.get_bean("simple_date_format")
    assert date_format.format(datetime(2021, 6, 4, 18, 24, 12)) == "2021-06-04 18:24:12"


class CommunityApplicationTests(ApplicationContextAware):
    alpha_dao: Annotated[AlphaDao, Autowired(), Qualifier("alpha_hibernate")]
    alpha_service: Annotated[AlphaService, Autowired()]
    simple_date_format: Annotated[SimpleDateFormat, Autowired()]

    def set_application_context(self, context):
        self.application_context = context


def test_field_autowiring_honours_qualifier(context):
    tests = CommunityApplicationTests()
    context.autowire(tests)

    assert tests.application_context is context
    assert tests.alpha_dao.select() == "Hibernate"
    assert isinstance(tests.alpha_service, AlphaService)
    assert tests.simple_date_format.pattern == "%Y-%m-%d %H:%M:%S"


def test_main_prints_demonstration_and_closes(capsys):
    main()

    lines = capsys.readouterr().out.splitlines()
    assert lines[0].startswith("ApplicationContext@")
    assert lines[1:3] == ["MyBatis", "Hibernate"]
    assert lines.count("instance AlphaService") == 2
    assert "destroy AlphaService" not in lines
