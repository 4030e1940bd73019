import re
import sys
from collections import namedtuple


class Version(namedtuple('Version', 'major minor build')):
    """
    A compiler version, ordered by (major, minor, build).
    """
    __slots__ = ()

    def __str__(self):
        return '%d.%d.%d' % self


DEFAULT_COMPILER_VERSION = Version(0, 0, 0)

# From this version on, a single clear line number on a method line maps the
# whole obfuscated range onto that one line.
LINE_MAPPING_BEHAVIOR_CHANGE_VERSION = Version(3, 1, 4)

COMPILER_VERSION_EXPRESSION = re.compile(r'#\s*compiler_version:\s*(\d+)\.(\d+)(?:\.(\d+))?')
LINE_NUMBER_EXPRESSION = re.compile(r'[0-9]+')

ARROW = ' -> '
MEMBER_INDENT = '    '


class ParseError(ValueError):
    """
    Raised when the mapping text does not follow the mapping file grammar.
    """

    def __init__(self, message, line=None, line_number=None):
        super(ParseError, self).__init__(message)
        self.line = line
        self.line_number = line_number

    def __str__(self):
        message = super(ParseError, self).__str__()
        if self.line_number is not None:
            return 'line %d: %s' % (self.line_number, message)
        return message


def is_comment_line(line):
    # Comment lines start with '#' and may have leading whitespace.
    return line.strip().startswith('#')


def try_parse_version(line, old):
    """
    Returns the compiler version announced by the given comment line, or old
    if the line doesn't announce one.
    """

    matcher = COMPILER_VERSION_EXPRESSION.search(line)
    if not matcher:
        return old

    build = matcher.group(3)
    return Version(int(matcher.group(1)),
                   int(matcher.group(2)),
                   int(build) if build is not None else 0)


class MappingReader():
    """
    Reads a proguard mapping and pumps its class, field and method mappings
    into a mapping processor.

    The mapping is an open text stream or any iterable of lines.
    """

    def __init__(self, mapping_file, verbose=False):
        self.mapping_file = mapping_file
        self.verbose = verbose

    def pump(self, mapping_processor):
        compiler_version = DEFAULT_COMPILER_VERSION
        class_name = None

        for line_number, line in enumerate(self.mapping_file, 1):
            line = line.rstrip()

            if not line:
                continue

            # Comment lines may occur anywhere in the file. The only ones we
            # care about announce the compiler version.
            if is_comment_line(line):
                new_version = try_parse_version(line, compiler_version)
                if self.verbose and new_version != compiler_version:
                    print('Compiler version %s' % (new_version,), file=sys.stderr)
                compiler_version = new_version
                continue

            # The distinction between a class mapping and a class member
            # mapping is the initial whitespace.
            if class_name is not None and line.startswith(MEMBER_INDENT):
                # Process the class member mapping, in the context of the
                # current clear class name.
                self.process_class_member_mapping(class_name,
                                                  line,
                                                  line_number,
                                                  compiler_version,
                                                  mapping_processor)
            else:
                # Process the class mapping and remember the class's
                # clear name.
                class_name = self.process_class_mapping(line, line_number, mapping_processor)

    @staticmethod
    def process_class_mapping(line, line_number, mapping_processor):

        # Class lines are of the form "___ -> ___:", containing the clear
        # class name and the obfuscated class name.
        arrow_index = line.find(ARROW)
        if arrow_index < 0 or \
           arrow_index + len(ARROW) + 1 >= len(line) or \
           not line.endswith(':'):
            raise ParseError("Error parsing class line: '%s'" % line, line, line_number)

        # Extract the elements.
        class_name = line[0: arrow_index]
        new_class_name = line[arrow_index + len(ARROW): len(line) - 1]

        # Process this class name mapping.
        mapping_processor.process_class_mapping(class_name, new_class_name)

        return class_name

    @staticmethod
    def process_class_member_mapping(class_name, line, line_number, compiler_version, mapping_processor):
        # Member lines are of the form "___:___:___ ___(___):___:___ -> ___",
        # containing the optional obfuscated line numbers, the return type,
        # the clear field/method name, optional arguments, the optional clear
        # line numbers and the obfuscated field/method name.

        trimmed = line.strip()
        space_index = trimmed.find(' ')
        arrow_index = trimmed.find(ARROW)

        if space_index < 0 or arrow_index < 0:
            raise ParseError("Error parsing field/method line: '%s'" % line, line, line_number)

        # Extract the elements.
        type = trimmed[0: space_index]
        name = trimmed[space_index + 1: arrow_index]
        new_name = trimmed[arrow_index + len(ARROW): len(trimmed)]

        # Is it a field or a method?
        if '(' not in name:
            mapping_processor.process_field_mapping(class_name, type, name, new_name)
            return

        # The type of a method may be prefixed with the obfuscated line
        # range: "start:end:type", or "line:type" for a single line.
        first_line_number = 0
        last_line_number = 0

        colon_index = type.find(':')
        if colon_index >= 0:
            first_line_number = parse_line_number(type[0: colon_index], line, line_number)
            last_line_number = first_line_number
            type = type[colon_index + 1:]

        colon_index = type.find(':')
        if colon_index >= 0:
            last_line_number = parse_line_number(type[0: colon_index], line, line_number)
            type = type[colon_index + 1:]

        argument_index1 = name.find('(')
        argument_index2 = name.find(')')
        if argument_index1 < 0 or argument_index2 < 0:
            raise ParseError("Error parsing method line: '%s'" % line, line, line_number)

        # Up to two clear line numbers may follow the arguments, read from
        # the end of the name.
        clear_lines = []
        while len(clear_lines) < 2:
            colon_index = name.rfind(':')
            if colon_index < argument_index2:
                break
            clear_lines.insert(0, parse_line_number(name[colon_index + 1:], line, line_number))
            name = name[0: colon_index]

        if len(clear_lines) == 2:
            first_clear_line, last_clear_line = clear_lines
        elif len(clear_lines) == 1:
            if compiler_version < LINE_MAPPING_BEHAVIOR_CHANGE_VERSION:
                # A single clear line starts a range as long as the
                # obfuscated one.
                first_clear_line = clear_lines[0]
                last_clear_line = first_clear_line + last_line_number - first_line_number
            else:
                # A single clear line is the target of every obfuscated line.
                first_clear_line = clear_lines[0]
                last_clear_line = first_clear_line
        else:
            first_clear_line = first_line_number
            last_clear_line = last_line_number

        arguments = name[argument_index1 + 1: argument_index2]
        name = name[0: argument_index1]

        mapping_processor.process_method_mapping(class_name,
                                                 first_line_number,
                                                 last_line_number,
                                                 type,
                                                 name,
                                                 arguments,
                                                 new_name,
                                                 first_clear_line,
                                                 last_clear_line)


def parse_line_number(text, line, line_number):
    # ASCII digits only, no signs or underscores.
    if not LINE_NUMBER_EXPRESSION.fullmatch(text.strip()):
        raise ParseError("Error parsing line number '%s': '%s'" % (text, line), line, line_number)
    return int(text.strip())
