import argparse
import sys

from pyproguardmap.mapping import ClassData, Frame, FrameData, LineNumberMapping, LineRange, ProguardMap
from pyproguardmap.reader import LINE_MAPPING_BEHAVIOR_CHANGE_VERSION, MappingReader, ParseError, Version
from pyproguardmap.signature import from_proguard_signature, get_file_name, to_clear_signature


__all__ = [
    'ClassData',
    'Deobfuscator',
    'Frame',
    'FrameData',
    'LINE_MAPPING_BEHAVIOR_CHANGE_VERSION',
    'LineNumberMapping',
    'LineRange',
    'MappingReader',
    'ParseError',
    'ProguardMap',
    'Version',
    'from_proguard_signature',
    'get_file_name',
    'parse',
    'to_clear_signature',
]


def parse(text, verbose=False):
    """
    Parses proguard mapping text into a new ProguardMap.
    :param text: the mapping as a string, a text stream or an iterable of lines
    :rtype: ProguardMap
    """

    proguard_map = ProguardMap(verbose)
    proguard_map.read_from_reader(text)
    return proguard_map


class Deobfuscator():
    """
    Answers deobfuscation queries read line by line from a file or stdin:

        class OBFUSCATED_CLASS
        field CLEAR_CLASS OBFUSCATED_FIELD
        frame CLEAR_CLASS OBFUSCATED_METHOD OBFUSCATED_SIGNATURE FILE LINE

    A line holding a single name is a class query. Any other line is echoed.
    """

    def __init__(self, mapping_file, verbose=False, input_file=None):
        self.verbose = verbose
        self.mapping_file = mapping_file
        self.input_file = input_file

        # Read the mapping file.
        self.proguard_map = ProguardMap(verbose)
        self.proguard_map.read_from_file(self.mapping_file)

        self.queries = {
            'class': (1, self.deobfuscate_class),
            'field': (2, self.deobfuscate_field),
            'frame': (5, self.deobfuscate_frame),
        }

    def execute(self, out=None):
        """
        Will start looping over input_file or sys.stdin, deobfuscating line by line
        """
        out = out or sys.stdout

        if self.input_file:
            with open(self.input_file, 'r') as reader:
                self.deobfuscate_lines(reader, out)
        else:
            self.deobfuscate_lines(sys.stdin, out)

    def deobfuscate_lines(self, reader, out):
        for line in reader:
            print(self.deobfuscate(line.rstrip('\r\n')), file=out)

    def deobfuscate(self, line):
        """Return a deobfuscated version of the given query line
        :rtype: str
        """

        words = line.split()
        if len(words) == 1:
            return self.deobfuscate_class(words[0])

        if words and words[0] in self.queries:
            argument_count, query = self.queries[words[0]]
            if len(words) - 1 == argument_count:
                arguments = words[1:]
                if words[0] == 'frame':
                    try:
                        arguments[-1] = int(arguments[-1])
                    except ValueError:
                        # A frame query with a line number that isn't a number.
                        return line
                return query(*arguments)

        # Not a query, print out the original line.
        return line

    def deobfuscate_class(self, obfuscated_class_name):
        return self.proguard_map.get_class_name(obfuscated_class_name)

    def deobfuscate_field(self, clear_class_name, obfuscated_field_name):
        return self.proguard_map.get_field_name(clear_class_name, obfuscated_field_name)

    def deobfuscate_frame(self, clear_class_name, obfuscated_method_name, obfuscated_signature, obfuscated_filename, obfuscated_line):
        frame = self.proguard_map.get_frame(clear_class_name,
                                            obfuscated_method_name,
                                            obfuscated_signature,
                                            obfuscated_filename,
                                            obfuscated_line)
        return '%s.%s%s (%s:%d)' % (clear_class_name, frame.method, frame.signature, frame.filename, frame.line)


def parse_args(args=None):
    parser = argparse.ArgumentParser(description='Deobfuscate class names, field names and stack frames')
    parser.add_argument("--mapping", "-m", dest="mapping_file", default=None, required=True,
                        help="mapping file to deobfuscate against")
    parser.add_argument("--input", "-i", dest="input_file", default=None,
                        help="queries to deobfuscate. If none provided, standard input is deobfuscated")
    parser.add_argument("--verbose", "-v", action="store_true", dest="verbose", default=False,
                        help="print verbose log")

    options = parser.parse_args(args)

    return options


def main(args=None):
    options = parse_args(args)

    try:
        deobfuscator = Deobfuscator(options.mapping_file, options.verbose, options.input_file)
    except (IOError, ParseError) as ex:
        print('Can\'t process mapping file (%s)' % ex, file=sys.stderr)
        sys.exit(1)

    deobfuscator.execute()


if __name__ == "__main__":
    main()
