from container_proxy.tests.fixtures_clients import *  # noqa
