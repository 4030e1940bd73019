from pyproguardmap.reader import ParseError


ARRAY_SYMBOL = '[]'

CLASS_PACKAGE_SEPARATOR = '.'
JAVA_PACKAGE_SEPARATOR = '/'

SOURCE_FILE_EXTENSION = '.java'

PRIMITIVE_TYPES = {
    'boolean': 'Z',
    'byte': 'B',
    'char': 'C',
    'short': 'S',
    'int': 'I',
    'long': 'J',
    'float': 'F',
    'double': 'D',
    'void': 'V',
}


def from_proguard_signature(sig):
    """
    Converts a proguard formatted type or method signature into a descriptor.
    @param sig the proguard signature, e.g. "<code>(int,java.lang.String)boolean</code>"
    @return the descriptor, e.g. "<code>(ILjava/lang/String;)Z</code>".
    """

    if sig.startswith('('):
        end = sig.find(')')
        if end < 0:
            raise ParseError('Error parsing signature: ' + sig)

        converted = '('
        if end > 1:
            for argument in sig[1:end].split(','):
                converted += from_proguard_signature(argument)
        converted += ')'
        converted += from_proguard_signature(sig[end + 1:])
        return converted
    elif sig.endswith(ARRAY_SYMBOL):
        return '[' + from_proguard_signature(sig[:-len(ARRAY_SYMBOL)])
    elif sig in PRIMITIVE_TYPES:
        return PRIMITIVE_TYPES[sig]
    else:
        return 'L' + internal_class_name(sig) + ';'


def to_clear_signature(obfuscated_sig, class_name_lookup):
    """
    Returns a clear signature for the given obfuscated descriptor, replacing the
    class name of every "L...;" span with class_name_lookup(dotted_name).
    """

    builder = ''
    index = 0
    while index < len(obfuscated_sig):
        char = obfuscated_sig[index]
        if char == 'L':
            end = obfuscated_sig.find(';', index)
            if end < 0:
                # Not a complete class type, copy the rest as is.
                builder += obfuscated_sig[index:]
                break

            class_name = external_class_name(obfuscated_sig[index + 1:end])
            builder += 'L' + internal_class_name(class_name_lookup(class_name)) + ';'
            index = end + 1
        else:
            builder += char
            index += 1

    return builder


def get_file_name(clear_class_name):
    """
    Returns the source file name for the given clear class name, collapsing
    inner classes onto the file of their outermost class.
    """

    filename = clear_class_name
    dot = filename.rfind(CLASS_PACKAGE_SEPARATOR)
    if dot >= 0:
        filename = filename[dot + 1:]

    dollar = filename.find('$')
    if dollar >= 0:
        filename = filename[:dollar]

    return filename + SOURCE_FILE_EXTENSION


def external_class_name(internal_class_name):
    """
    Converts an internal class name into an external class name.
    @param internal_class_name the internal class name, e.g. "<code>java/lang/Object</code>"
    @return the external class name,  e.g. "<code>java.lang.Object</code>".
    """

    return internal_class_name.replace(JAVA_PACKAGE_SEPARATOR, CLASS_PACKAGE_SEPARATOR)


def internal_class_name(external_class_name):
    return external_class_name.replace(CLASS_PACKAGE_SEPARATOR, JAVA_PACKAGE_SEPARATOR)
