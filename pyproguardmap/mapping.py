import bisect
import io
import os
import sys
from collections import namedtuple

from pyproguardmap.reader import MappingReader
from pyproguardmap.signature import ARRAY_SYMBOL, from_proguard_signature, get_file_name, to_clear_signature


class Frame(namedtuple('Frame', 'method signature filename line')):
    """
    Information associated with a stack frame that identifies a particular
    line of source code.

    method    -- the name of the method the frame belongs to, e.g. "equals"
    signature -- the method signature, e.g. "(Ljava/lang/Object;)Z"
    filename  -- the name of the source file, e.g. "Object.java"
    line      -- the line number in that source file
    """
    __slots__ = ()


class LineRange(namedtuple('LineRange', 'start end')):
    __slots__ = ()

    def has_line(self, line_number):
        return self.start <= line_number <= self.end


class LineNumberMapping():
    """
    Maps the lines of one obfuscated range onto one clear range.
    """

    def __init__(self, obfuscated_range, clear_range):
        self.obfuscated_range = obfuscated_range
        self.clear_range = clear_range

    def has_obfuscated_line(self, line_number):
        return self.obfuscated_range.has_line(line_number)

    def map_obfuscated_line(self, line_number):
        mapped_line = self.clear_range.start + line_number - self.obfuscated_range.start
        if not self.clear_range.has_line(mapped_line):
            # Past the end of the clear range, stick to its last line.
            return self.clear_range.end
        return mapped_line


class FrameData():
    """
    The clear name of a method and its line number mappings, ordered by the
    start of their obfuscated range.
    """

    def __init__(self, clear_method_name):
        self.clear_method_name = clear_method_name
        self.line_starts = []
        self.line_numbers = dict()

    def add_line_mapping(self, obfuscated_range, clear_range):
        if obfuscated_range.start not in self.line_numbers:
            bisect.insort(self.line_starts, obfuscated_range.start)
        self.line_numbers[obfuscated_range.start] = LineNumberMapping(obfuscated_range, clear_range)

    def get_clear_line(self, obfuscated_line):
        # Floor lookup: the mapping with the greatest start <= obfuscated_line.
        index = bisect.bisect_right(self.line_starts, obfuscated_line)
        if index > 0:
            mapping = self.line_numbers[self.line_starts[index - 1]]
            if mapping.has_obfuscated_line(obfuscated_line):
                return mapping.map_obfuscated_line(obfuscated_line)

        return obfuscated_line


class ClassData():
    """
    A class record
    """

    def __init__(self, clear_name):
        self.clear_name = clear_name

        # Obfuscated field name -> clear field name.
        self.fields = dict()

        # Obfuscated method name + clear signature -> FrameData.
        self.frames = dict()

    def add_field(self, obfuscated_name, clear_name):
        self.fields[obfuscated_name] = clear_name

    def get_field(self, obfuscated_name):
        """
        Returns the clear name of the field, or the obfuscated name if it isn't known.
        """
        return self.fields.get(obfuscated_name, obfuscated_name)

    def add_frame(self, obfuscated_method_name, clear_method_name, clear_signature, obfuscated_range, clear_range):
        key = obfuscated_method_name + clear_signature
        frame_data = self.frames.get(key)
        if frame_data is None:
            frame_data = FrameData(clear_method_name)
            self.frames[key] = frame_data

        frame_data.add_line_mapping(obfuscated_range, clear_range)

    def get_frame(self, clear_class_name, obfuscated_method_name, clear_signature, obfuscated_filename, obfuscated_line):
        frame_data = self.frames.get(obfuscated_method_name + clear_signature)
        if frame_data is None:
            frame_data = FrameData(obfuscated_method_name)

        return Frame(frame_data.clear_method_name,
                     clear_signature,
                     get_file_name(clear_class_name),
                     frame_data.get_clear_line(obfuscated_line))


class ProguardMap():
    """
    A representation of a proguard mapping for deobfuscating class names,
    field names, and stack frames.

    Lookups never fail: anything the mapping doesn't know about is returned
    in its obfuscated form.
    """

    def __init__(self, verbose=False):
        self.verbose = verbose

        self.classes_from_clear_name = dict()
        self.classes_from_obfuscated_name = dict()

    def read_from_file(self, mapping_file):
        """
        Adds the mapping information in the given mapping file, as written by
        proguard's -printmapping option.
        """
        with open(os.fspath(mapping_file), 'r') as reader:
            self.read_from_reader(reader)

    def read_from_reader(self, reader):
        """
        Adds the mapping information read from a text stream, an iterable of
        lines or the mapping text itself. Raises ParseError if the mapping is
        malformed.
        """
        if isinstance(reader, str):
            reader = io.StringIO(reader)

        MappingReader(reader, self.verbose).pump(self)

        if self.verbose:
            print('Read mappings for %d classes' % len(self.classes_from_obfuscated_name), file=sys.stderr)

    def get_class_name(self, obfuscated_class_name):
        """
        Returns the clear class name. Trailing array dimensions are kept.
        """

        base_name = obfuscated_class_name
        array_suffix = ''
        while base_name.endswith(ARRAY_SYMBOL):
            array_suffix += ARRAY_SYMBOL
            base_name = base_name[:-len(ARRAY_SYMBOL)]

        class_data = self.classes_from_obfuscated_name.get(base_name)
        clear_base_name = base_name if class_data is None else class_data.clear_name
        return clear_base_name + array_suffix

    def get_field_name(self, clear_class_name, obfuscated_field_name):
        class_data = self.classes_from_clear_name.get(clear_class_name)
        if class_data is None:
            return obfuscated_field_name
        return class_data.get_field(obfuscated_field_name)

    def get_frame(self, clear_class_name, obfuscated_method_name, obfuscated_signature, obfuscated_filename, obfuscated_line):
        """
        Returns the deobfuscated stack frame for a method of the given clear class.

        :param clear_class_name: the clear name of the class the method belongs to
        :param obfuscated_method_name: the obfuscated method name
        :param obfuscated_signature: the obfuscated method descriptor, e.g. "(La/b;)V"
        :param obfuscated_filename: the obfuscated source file name
        :param obfuscated_line: the obfuscated line number
        :rtype: Frame
        """

        clear_signature = to_clear_signature(obfuscated_signature, self.get_class_name)

        class_data = self.classes_from_clear_name.get(clear_class_name)
        if class_data is None:
            return Frame(obfuscated_method_name, clear_signature, obfuscated_filename, obfuscated_line)

        return class_data.get_frame(clear_class_name,
                                    obfuscated_method_name,
                                    clear_signature,
                                    obfuscated_filename,
                                    obfuscated_line)

    def process_class_mapping(self, class_name, new_class_name):
        """
        Implementations for MappingProcessor.
        """

        # Both names refer to the same record; later class lines win.
        class_data = ClassData(class_name)
        self.classes_from_clear_name[class_name] = class_data
        self.classes_from_obfuscated_name[new_class_name] = class_data

    def process_field_mapping(self, class_name, field_type, field_name, new_field_name):
        self.classes_from_clear_name[class_name].add_field(new_field_name, field_name)

    def process_method_mapping(self,
                               class_name,
                               first_line_number,
                               last_line_number,
                               method_return_type,
                               method_name,
                               method_arguments,
                               new_method_name,
                               first_clear_line,
                               last_clear_line):

        clear_signature = from_proguard_signature('(%s)%s' % (method_arguments, method_return_type))

        self.classes_from_clear_name[class_name].add_frame(new_method_name,
                                                           method_name,
                                                           clear_signature,
                                                           LineRange(first_line_number, last_line_number),
                                                           LineRange(first_clear_line, last_clear_line))
