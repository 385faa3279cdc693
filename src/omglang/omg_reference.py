"""OMG language vocabulary and reference text, served via the REST API and MCP."""

from __future__ import annotations

KEYWORDS: dict[str, str] = {
    "version": "Declares the OMG language version of the file, e.g. `version 1.0`.",
    "import": 'Imports a list file under an alias: `import "names.txt" as names`.',
    "as": "Introduces the alias of an import.",
    "with": "Introduces import options or resolver flags.",
    "resolver": "Starts the default resolver declaration or a resolver scope.",
    "default": "Marks the file-wide resolver: `resolver default uses exact`.",
    "uses": "Attaches a resolver configuration to a rule.",
}

IMPORT_FLAGS: dict[str, str] = {
    "word-boundary": "Entries must match on word boundaries.",
    "word-prefix": "Entries may match as the prefix of a word.",
    "word-suffix": "Entries may match as the suffix of a word.",
    "ignore-case": "Case-insensitive matching of entries.",
    "ignore-punctuation": "Punctuation is ignored when matching entries.",
    "elide-whitespace": "Whitespace inside entries is optional.",
    "line-start": "Entries must match at the start of a line.",
    "line-end": "Entries must match at the end of a line.",
}

RESOLVER_FLAGS: dict[str, str] = {
    "ignore-case": "Case-insensitive resolution.",
    "ignore-punctuation": "Punctuation is ignored during resolution.",
    "optional-tokens": 'Tokens listed in the given files may be omitted: `optional-tokens("tokens.txt")`.',
}

ESCAPE_SEQUENCES: dict[str, str] = {
    "\\d": "Any digit",
    "\\D": "Any non-digit",
    "\\s": "Any whitespace character",
    "\\S": "Any non-whitespace character",
    "\\w": "Any word character",
    "\\W": "Any non-word character",
    "\\b": "Word boundary",
    "\\B": "Non-word boundary",
}

QUANTIFIERS: dict[str, str] = {
    "?": "Optional (zero or one)",
    "{n}": "Exactly n times",
    "{n,m}": "Between n and m times",
}

BUILTIN_RESOLVERS: dict[str, str] = {
    "exact": "Exact string match against the entity list.",
    "fuzzy": "Approximate string match; accepts a threshold argument.",
    "phonetic": "Sound-alike match.",
    "semantic": "Embedding-based similarity match.",
    "regex": "Regular-expression match.",
    "custom": "User-supplied resolver implementation.",
}

FILTER_METHODS: dict[str, str] = {
    "contains": "Entries containing the given text.",
    "startsWith": "Entries starting with the given text.",
    "endsWith": "Entries ending with the given text.",
    "matches": "Entries matching the given pattern.",
    "length": "Entries of the given length.",
    "regex": "Entries matching the given regular expression.",
    "range": "Entries within the given range.",
    "exclude": "Entries other than the given text.",
}

OMG_REFERENCE = """\
# OMG (Object Matching Grammar) Reference

An OMG file describes patterns for finding entities in text. It has up to four
sections, in this order:

## 1. version: optional, first statement

```
version 1.0
```

## 2. imports: entity lists loaded from files

```
import "names.txt" as names with word-boundary, ignore-case
```

Import flags: word-boundary, word-prefix, word-suffix, ignore-case,
ignore-punctuation, elide-whitespace, line-start, line-end

## 3. default resolver: optional

```
resolver default uses exact with ignore-case
```

## 4. rules: `name = expression [uses ...]`

```
person = (?P<title>[[titles]])? \\s [[names]]
person_fuzzy = [[names]] uses fuzzy(threshold="0.8") with ignore-case
company = [[companies: endsWith("Inc")]] uses exact with optional-tokens("suffixes.txt")
```

Expressions are regex-like:

| Syntax | Meaning |
|---|---|
| `a b` | concatenation |
| `a \\| b` | alternation |
| `( ... )` | group |
| `(?P<name> ... )` | named capture |
| `[[list]]` / `[[list: filter("arg")]]` | match an entry of an imported list |
| `[a-z0-9_]` | character class |
| `\\d \\D \\s \\S \\w \\W \\b \\B` | escapes |
| `^` `$` `.` | anchors and any character |
| `"text"` | literal text |
| `?` `{n}` `{n,m}` | bounded quantifiers |

Quantifiers must be bounded: `+`, `*` and `{n,}` are rejected. Use `{1,10}`
or `{0,10}` instead.

Built-in resolvers: exact, fuzzy, phonetic, semantic, regex, custom

Resolver flags: ignore-case, ignore-punctuation, optional-tokens("file", ...)

List filters: contains, startsWith, endsWith, matches, length, regex, range,
exclude

Lines starting with `#` are comments.

## Diagnostics

| Code | Meaning |
|---|---|
| syntax-error | the parser could not read a construct |
| undefined-reference | identifier is neither a rule, an import alias nor a built-in resolver |
| unbounded-quantifier | `{n,}` |
| open-ended-quantifier | `+` or `*` |
| missing-import-file | imported file does not exist next to the document |
| missing-optional-tokens-file | optional-tokens file does not exist next to the document |
"""
