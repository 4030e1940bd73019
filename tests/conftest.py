"""
Pytest configuration and shared fixtures for pyproguardmap tests.
"""
import pytest

from pyproguardmap import parse


SAMPLE_MAPPING = """\
# compiler: R8
# This mapping has no compiler version.
com.example.Foo -> a:
    int count -> a
    java.lang.String name -> b
    # {"id":"sourceFile","fileName":"Foo.java"}
    1:3:void <init>() -> <init>
    10:10:void run():20 -> c
    11:14:int compute(int,java.lang.String):40 -> d
    15:15:int compute(int,java.lang.String):50 -> d
    16:18:boolean check(long[]):60:61 -> e
    void noLines() -> f
    20:20:void setInner(com.example.Foo$Inner):70 -> g
com.example.Foo$Inner -> a$a:
    com.example.Foo this$0 -> a
    5:7:void inner():100 -> a
com.example.Bar -> b:
    int[][] grid -> a
"""


@pytest.fixture
def sample_mapping():
    return SAMPLE_MAPPING


@pytest.fixture
def proguard_map():
    return parse(SAMPLE_MAPPING)


@pytest.fixture
def mapping_file(tmp_path):
    path = tmp_path / "mapping.txt"
    path.write_text(SAMPLE_MAPPING)
    return str(path)
