#!/usr/bin/env python3
"""
Bedrock Entity Component Type Generator

Compiles the Minecraft Bedrock entity component JSON schemas into TypeScript
type declarations. Every $ref is resolved eagerly, across files when needed,
so each component becomes a self-contained structural type.

Usage:
    python schema_compiler.py [output_file] [schema_folder]

Without a schema folder the pinned schema archive is downloaded first
(see schema_downloader.py).
"""

import json
import posixpath
import re
import sys
from pathlib import Path
from typing import Dict, List, Any, Optional, Set, Tuple
from dataclasses import dataclass, field

import schema_downloader
from schema_downloader import REPO, REF

# Settings
ROOT_SCHEMA = "source/behavior/entities/format/components.json"
DEFAULT_OUTPUT = "generated/entityComponents.ts"
SCRIPT_NAME = "schema_compiler.py"
TYPE_PREFIX = "EntityComponent"
INTERFACE_NAME = "EntityComponents"
MAX_DEPTH = 20

PRIMITIVE_TYPES = {
    'string': 'string',
    'number': 'number',
    'integer': 'number',
    'boolean': 'boolean',
    'null': 'null',
}

IDENTIFIER_PATTERN = re.compile(r'^[A-Za-z_$][A-Za-z0-9_$]*$')
WORD_SEPARATOR = re.compile(r'[^a-zA-Z0-9]+')

# Marks an absent default/example, since null is a legitimate value for both
_UNSET = object()


class SchemaError(Exception):
    """Base class for schema loading and reference errors"""


class SchemaNotFound(SchemaError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Schema document not found: {path}")


class SchemaParseError(SchemaError):
    def __init__(self, path: str, detail: str):
        self.path = path
        self.detail = detail
        super().__init__(f"Schema document {path} is not valid JSON: {detail}")


class UnresolvedReference(SchemaError):
    def __init__(self, ref: str, path: str):
        self.ref = ref
        self.path = path
        super().__init__(f"{path}: cannot resolve $ref '{ref}'")


class CyclicReference(SchemaError):
    def __init__(self, ref: str, path: str):
        self.ref = ref
        self.path = path
        super().__init__(f"{path}: $ref '{ref}' loops back on itself")


@dataclass
class SchemaContext:
    """A schema node together with the logical path of the document it came from"""
    schema: Any
    path: str


def normalize_path(path: str) -> str:
    return posixpath.normpath(path.replace('\\', '/'))


class SchemaStore:
    """Loads schema documents by logical path and parses each one at most once"""

    def __init__(self, root: Path):
        self.root = Path(root)
        self.documents: Dict[str, Any] = {}

    def load(self, path: str) -> Any:
        key = normalize_path(path)
        if key not in self.documents:
            self.documents[key] = self.read_document(key)
        return self.documents[key]

    def context(self, path: str) -> SchemaContext:
        key = normalize_path(path)
        return SchemaContext(self.load(key), key)

    def cached(self, path: str) -> Optional[Any]:
        return self.documents.get(normalize_path(path))

    def loaded_paths(self) -> List[str]:
        return list(self.documents)

    def read_document(self, path: str) -> Any:
        # Logical paths never leave the schema root
        if path == '..' or path.startswith('../') or posixpath.isabs(path):
            raise SchemaNotFound(path)

        try:
            raw = (self.root / path).read_bytes()
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
            raise SchemaNotFound(path) from None

        try:
            return json.loads(raw)
        except ValueError as e:
            raise SchemaParseError(path, str(e)) from e


def unescape_segment(segment: str) -> str:
    # %3A is how the upstream schemas spell ':' inside definition names
    return segment.replace('~1', '/').replace('~0', '~').replace('%3A', ':')


def get_by_pointer(root: Any, pointer: str) -> Optional[Any]:
    """Resolve a `#/a/b/c` pointer; any other pointer (including `#`) yields the root itself"""
    if not pointer.startswith('#/'):
        return root

    current = root
    for part in pointer[2:].split('/'):
        part = unescape_segment(part)
        if isinstance(current, dict) and part in current:
            current = current[part]
        elif isinstance(current, list) and part.isdecimal() and int(part) < len(current):
            current = current[int(part)]
        else:
            return None
    return current


class ReferenceResolver:
    """Dereferences $ref strings relative to the document that contains them"""

    def __init__(self, store: SchemaStore):
        self.store = store

    def resolve_ref(self, ref: str, context: SchemaContext) -> Optional[SchemaContext]:
        # An empty reference points at the node that holds it
        if not ref.strip():
            return context

        if ref.startswith('#/'):
            document = self.store.cached(context.path)
            if document is None:
                document = context.schema
            target = get_by_pointer(document, ref)
            return SchemaContext(target, context.path) if target is not None else None

        if ref.startswith('#'):
            return context

        ref_path, _, fragment = ref.partition('#')
        base_dir = posixpath.dirname(context.path)
        normalized = normalize_path(posixpath.join(base_dir, ref_path))
        target_context = self.store.context(normalized)

        if fragment.startswith('/'):
            target = get_by_pointer(target_context.schema, f"#{fragment}")
            return SchemaContext(target, normalized) if target is not None else None

        return target_context

    def step(self, node: Dict[str, Any], context: SchemaContext,
             seen: Set[Tuple[str, str]]) -> SchemaContext:
        """Follow a single $ref hop and record it in `seen` once it resolves"""
        ref = node['$ref']
        if not isinstance(ref, str):
            raise UnresolvedReference(str(ref), context.path)

        key = (context.path, ref)
        if key in seen:
            raise CyclicReference(ref, context.path)

        target = self.resolve_ref(ref, context)
        if target is None:
            raise UnresolvedReference(ref, context.path)
        seen.add(key)
        return target

    def follow(self, node: Any, context: SchemaContext) -> SchemaContext:
        """Follow a chain of $ref hops to the first concrete node.

        A chain that cannot be resolved, or that revisits one of its own
        references, stops at the last node reached and returns it as-is.
        """
        seen: Set[Tuple[str, str]] = set()
        current = SchemaContext(node, context.path)
        owner = context
        while isinstance(current.schema, dict) and '$ref' in current.schema:
            try:
                owner = self.step(current.schema, owner, seen)
            except (UnresolvedReference, CyclicReference):
                return current
            current = owner
        return current


# Type expression AST
@dataclass
class Type:
    pass


@dataclass
class UnknownType(Type):
    pass


@dataclass
class PrimitiveType(Type):
    name: str  # string, number, boolean, null


@dataclass
class LiteralType(Type):
    value: Any


@dataclass
class ArrayType(Type):
    element_type: Type


@dataclass
class TupleType(Type):
    element_types: List[Type]


@dataclass
class UnionType(Type):
    types: List[Type]


@dataclass
class IntersectionType(Type):
    types: List[Type]


@dataclass
class MapType(Type):
    value_type: Type


@dataclass
class Docs:
    title: Optional[str] = None
    description: Optional[str] = None
    default: Any = _UNSET
    example: Any = _UNSET

    def is_empty(self) -> bool:
        return (not self.title and not self.description
                and self.default is _UNSET and self.example is _UNSET)


@dataclass
class RecordField:
    name: str
    type: Type
    optional: bool = True
    docs: Optional[Docs] = None


@dataclass
class RecordType(Type):
    fields: List[RecordField] = field(default_factory=list)
    index_type: Optional[Type] = None


UNKNOWN = UnknownType()


def to_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(',', ':'))


def quote_string(value: str) -> str:
    escaped = (value.replace('\\', '\\\\').replace("'", "\\'")
               .replace('\n', '\\n').replace('\r', '\\r'))
    return f"'{escaped}'"


def render_literal(value: Any) -> str:
    if isinstance(value, str):
        return quote_string(value)
    return to_json(value)


def schema_text(node: Any, key: str) -> Optional[str]:
    if not isinstance(node, dict):
        return None
    value = node.get(key)
    if value is None or value == '':
        return None
    return str(value)


def extract_docs(node: Any) -> Docs:
    """Project the documentation fields of a schema node"""
    docs = Docs(title=schema_text(node, 'title'), description=schema_text(node, 'description'))
    if not isinstance(node, dict):
        return docs

    if docs.title == docs.description:
        docs.title = None
    if 'default' in node:
        docs.default = node['default']
    examples = node.get('examples')
    if isinstance(examples, list) and examples:
        docs.example = examples[0]
    return docs


def render_doc_comment(docs: Docs, indent: str = '') -> str:
    """Render docs as a JSDoc block, or an empty string when there is nothing to say"""
    lines = []
    if docs.title and docs.title != docs.description:
        lines.append(docs.title)
    if docs.description:
        lines.extend(docs.description.splitlines())
    if docs.default is not _UNSET:
        lines.append(f"@default {to_json(docs.default)}")
    if docs.example is not _UNSET:
        lines.append(f"@example {to_json(docs.example)}")

    if not lines:
        return ''

    body = []
    for line in lines:
        # A stray '*/' would close the comment early
        line = line.replace('*/', '*\\/')
        body.append(f"{indent} * {line}".rstrip())
    return '\n'.join([f"{indent}/**", *body, f"{indent} */"])


def render_type(type_node: Type, level: int = 0) -> str:
    """Render a type expression as TypeScript source"""
    if isinstance(type_node, UnknownType):
        return 'unknown'

    elif isinstance(type_node, PrimitiveType):
        return type_node.name

    elif isinstance(type_node, LiteralType):
        return render_literal(type_node.value)

    elif isinstance(type_node, ArrayType):
        element = render_type(type_node.element_type, level)
        if isinstance(type_node.element_type, (UnionType, IntersectionType)):
            return f"({element})[]"
        return f"{element}[]"

    elif isinstance(type_node, TupleType):
        return '[' + ', '.join(render_type(t, level) for t in type_node.element_types) + ']'

    elif isinstance(type_node, UnionType):
        return ' | '.join(render_type(t, level) for t in type_node.types)

    elif isinstance(type_node, IntersectionType):
        parts = []
        for t in type_node.types:
            rendered = render_type(t, level)
            parts.append(f"({rendered})" if isinstance(t, UnionType) else rendered)
        return ' & '.join(parts)

    elif isinstance(type_node, MapType):
        return f"Record<string, {render_type(type_node.value_type, level)}>"

    elif isinstance(type_node, RecordType):
        return render_record(type_node, level)

    else:
        return 'unknown'


def render_record(record: RecordType, level: int) -> str:
    if not record.fields and record.index_type is None:
        return '{}'

    indent = '  ' * (level + 1)
    lines = ['{']
    for record_field in record.fields:
        if record_field.docs is not None:
            doc = render_doc_comment(record_field.docs, indent)
            if doc:
                lines.append(doc)
        key = record_field.name if IDENTIFIER_PATTERN.match(record_field.name) else quote_string(record_field.name)
        marker = '?' if record_field.optional else ''
        lines.append(f"{indent}{key}{marker}: {render_type(record_field.type, level + 1)};")

    if record.index_type is not None:
        lines.append(f"{indent}[key: string]: {render_type(record.index_type, level + 1)};")

    lines.append(f"{'  ' * level}}}")
    return '\n'.join(lines)


def make_union(types: List[Type]) -> Type:
    """Combine alternatives, dropping duplicates and collapsing a lone survivor"""
    unique: Dict[str, Type] = {}
    for type_node in types:
        members = type_node.types if isinstance(type_node, UnionType) else [type_node]
        for member in members:
            unique.setdefault(render_type(member), member)

    if not unique:
        return UNKNOWN
    if len(unique) == 1:
        return next(iter(unique.values()))
    return UnionType(list(unique.values()))


def make_intersection(types: List[Type]) -> Type:
    unique: Dict[str, Type] = {}
    for type_node in types:
        members = type_node.types if isinstance(type_node, IntersectionType) else [type_node]
        for member in members:
            unique.setdefault(render_type(member), member)

    if not unique:
        return UNKNOWN
    if len(unique) == 1:
        return next(iter(unique.values()))
    return IntersectionType(list(unique.values()))


class TypeSynthesizer:
    """Converts JSON schema nodes into TypeScript type expressions"""

    def __init__(self, resolver: ReferenceResolver, max_depth: int = MAX_DEPTH):
        self.resolver = resolver
        self.max_depth = max_depth

    def synthesize(self, node: Any, context: SchemaContext, depth: int = 0) -> Type:
        return self.convert(node, context, depth, set())

    def convert(self, node: Any, context: SchemaContext, depth: int,
                seen: Set[Tuple[str, str]]) -> Type:
        """Dispatch on schema shape; the first matching rule wins.

        `seen` holds the $ref keys on the path from the root down to this
        node. A key is removed again once its target has been converted, so
        sibling branches may expand the same definition while a reference
        that reappears below itself becomes unknown.
        """
        if depth > self.max_depth:
            return UNKNOWN

        if not isinstance(node, dict):
            return UNKNOWN

        # A $ref node is pure indirection, nothing else on it is considered
        if '$ref' in node:
            try:
                target = self.resolver.step(node, context, seen)
            except (UnresolvedReference, CyclicReference):
                return UNKNOWN
            key = (context.path, node['$ref'])
            try:
                return self.convert(target.schema, target, depth + 1, seen)
            finally:
                seen.discard(key)

        if 'oneOf' in node or 'anyOf' in node:
            options = node['oneOf'] if 'oneOf' in node else node['anyOf']
            if not isinstance(options, list):
                return UNKNOWN
            return make_union([self.convert(option, context, depth + 1, seen) for option in options])

        if 'allOf' in node:
            options = node['allOf']
            if not isinstance(options, list):
                return UNKNOWN
            return make_intersection([self.convert(option, context, depth + 1, seen) for option in options])

        if 'enum' in node:
            values = node['enum']
            if not isinstance(values, list):
                return UNKNOWN
            return make_union([LiteralType(value) for value in values])

        if 'const' in node:
            return LiteralType(node['const'])

        schema_type = node.get('type')

        if isinstance(schema_type, list):
            return make_union([
                self.convert({**node, 'type': member}, context, depth + 1, seen)
                for member in schema_type
            ])

        items = node.get('items')
        if schema_type == 'array' and items is not None and items is not False:
            if isinstance(items, list):
                return TupleType([self.convert(item, context, depth + 1, seen) for item in items])
            return ArrayType(self.convert(items, context, depth + 1, seen))

        if schema_type == 'object' or node.get('properties') is not None:
            additional = node.get('additionalProperties')
            if node.get('properties') is None and additional is not False and not isinstance(additional, dict):
                return MapType(UNKNOWN)
            return self.convert_record(node, context, depth, seen)

        if isinstance(schema_type, str) and schema_type in PRIMITIVE_TYPES:
            return PrimitiveType(PRIMITIVE_TYPES[schema_type])
        if schema_type == 'array':
            return ArrayType(UNKNOWN)

        return UNKNOWN

    def convert_record(self, node: Dict[str, Any], context: SchemaContext, depth: int,
                       seen: Set[Tuple[str, str]]) -> RecordType:
        properties = node.get('properties')
        if not isinstance(properties, dict):
            properties = {}

        required = node.get('required')
        required = {name for name in required if isinstance(name, str)} if isinstance(required, list) else set()

        fields = []
        for name, value in properties.items():
            docs = extract_docs(value)
            fields.append(RecordField(
                name,
                self.convert(value, context, depth + 1, seen),
                optional=name not in required,
                docs=None if docs.is_empty() else docs,
            ))

        index_type = None
        additional = node.get('additionalProperties')
        if additional is True:
            index_type = UNKNOWN
        elif isinstance(additional, dict):
            index_type = self.convert(additional, context, depth + 1, seen)

        return RecordType(fields, index_type)


@dataclass
class ComponentDefinition:
    name: str
    type: Type
    title: Optional[str] = None
    description: Optional[str] = None


def to_pascal_case(value: str) -> str:
    """`minecraft:behavior.melee_attack` -> `MinecraftBehaviorMeleeAttack`"""
    return ''.join(part[:1].upper() + part[1:] for part in WORD_SEPARATOR.split(value) if part)


class Emitter:
    """Assembles component type aliases and the aggregate interface into one TypeScript module"""

    def __init__(self, repo: str = REPO, ref: str = REF, root_schema: str = ROOT_SCHEMA,
                 type_prefix: str = TYPE_PREFIX, interface_name: str = INTERFACE_NAME):
        self.repo = repo
        self.ref = ref
        self.root_schema = root_schema
        self.type_prefix = type_prefix
        self.interface_name = interface_name

    def banner(self) -> str:
        return '\n'.join([
            '/*',
            ' * AUTO-GENERATED FILE',
            f" * Source repo: {self.repo}",
            f" * Source ref: {self.ref}",
            f" * Script: {SCRIPT_NAME}",
            ' *',
            ' * Do not edit this file directly. Run `bedrock-component-types` instead.',
            f" * Source file: {self.root_schema}",
            f" * Origin: https://raw.githubusercontent.com/{self.repo}/{self.ref}/{self.root_schema}",
            ' */',
        ])

    def type_names(self, components: List[ComponentDefinition]) -> List[str]:
        names = []
        taken: Set[str] = set()
        for component in components:
            base = f"{self.type_prefix}{to_pascal_case(component.name)}"
            name, suffix = base, 1
            # Distinct keys can fold to the same identifier
            while name in taken:
                suffix += 1
                name = f"{base}{suffix}"
            taken.add(name)
            names.append(name)
        return names

    def render_component(self, component: ComponentDefinition, type_name: str) -> str:
        doc = render_doc_comment(Docs(title=component.title, description=component.description))
        declaration = f"export type {type_name} = {render_type(component.type)};"
        return f"{doc}\n{declaration}" if doc else declaration

    def render_interface(self, components: List[ComponentDefinition], names: List[str]) -> str:
        lines = [
            '/**',
            ' * All known Minecraft entity components with strong TypeScript types.',
            ' */',
            f"export interface {self.interface_name} {{",
        ]
        for component, type_name in zip(components, names):
            lines.append(f"  {quote_string(component.name)}?: {type_name};")
        lines.append('}')
        lines.append('')
        lines.append(f"export default {self.interface_name};")
        return '\n'.join(lines)

    def emit(self, components: List[ComponentDefinition]) -> str:
        names = self.type_names(components)
        sections = [self.banner()]
        sections.extend(self.render_component(c, n) for c, n in zip(components, names))
        sections.append(self.render_interface(components, names))
        return '\n\n'.join(sections) + '\n'


class SchemaCompiler:
    """Main compiler class, owning the schema store for a single run"""

    def __init__(self, schema_dir: Path, root_schema: str = ROOT_SCHEMA,
                 emitter: Optional[Emitter] = None):
        self.store = SchemaStore(schema_dir)
        self.resolver = ReferenceResolver(self.store)
        self.synthesizer = TypeSynthesizer(self.resolver)
        self.root_schema = root_schema
        self.emitter = emitter or Emitter(root_schema=root_schema)

    def extract_components(self) -> List[ComponentDefinition]:
        """Build one component definition per property of the root schema"""
        context = self.store.context(self.root_schema)
        properties = context.schema.get('properties') if isinstance(context.schema, dict) else None
        if not isinstance(properties, dict):
            print(f"Warning: {self.root_schema} declares no component properties")
            return []

        components = []
        for name, node in properties.items():
            resolved = self.resolver.follow(node, context)
            type_node = self.synthesizer.synthesize(resolved.schema, resolved)
            if isinstance(type_node, UnknownType):
                print(f"Warning: no type information for component {name}")

            components.append(ComponentDefinition(
                name,
                type_node,
                title=schema_text(resolved.schema, 'title') or schema_text(node, 'title'),
                description=schema_text(resolved.schema, 'description') or schema_text(node, 'description'),
            ))
        return components

    def compile(self) -> str:
        return self.emitter.emit(self.extract_components())

    def write(self, output_file: Path) -> int:
        """Compile and write the TypeScript module; returns the number of components"""
        print(f"Compiling {self.root_schema}")
        components = self.extract_components()
        output = self.emitter.emit(components)

        output_file = Path(output_file)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        with open(output_file, 'w', encoding='utf-8') as f:
            f.write(output)

        print(f"Generated {output_file} ({len(components)} entity components)")
        return len(components)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    args = sys.argv[1:] if argv is None else argv
    if len(args) > 2:
        print("Usage: python schema_compiler.py [output_file] [schema_folder]")
        return 1

    output_file = Path(args[0]) if args else Path(DEFAULT_OUTPUT)

    if len(args) == 2:
        schema_dir = Path(args[1])
        if not schema_dir.is_dir():
            print(f"Schema folder {schema_dir} does not exist")
            return 1
    else:
        if not schema_downloader.ensure_repo_ready():
            return 1
        schema_dir = schema_downloader.REPO_DIR

    compiler = SchemaCompiler(schema_dir)
    try:
        compiler.write(output_file)
    except SchemaError as e:
        print(f"Error compiling {ROOT_SCHEMA}: {e}", file=sys.stderr)
        return 1

    print("Compilation complete!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
