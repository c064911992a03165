"""
Lark grammar for the C# found in Razor code spans.

A code span rarely holds a complete program: ``if (a) {`` opens a block that
the markup after it continues, ``} else {`` closes one block and opens the
next, and expressions often lack their semicolon. The grammar therefore
accepts:

- bare ``}`` closes and ``} else ...`` continuations at the top level
- blocks terminated by OPEN_BLOCK_END, a sentinel the parser appends once
  per unmatched ``{``
- one unterminated statement or a dangling ``if (...)``/``foreach (...)``
  header as the last member of the fragment

Statements inside C# blocks still need their semicolons.
"""

# Private-use character; cannot occur in a template
OPEN_BLOCK_END = "\ue000"

# Words that never start an identifier
KEYWORDS = (
    "if", "else", "foreach", "in", "new", "var", "while", "for", "switch",
    "using", "lock", "true", "false", "null", "is", "as", "do", "try",
)


def get_code_grammar() -> str:
    """Return the Lark grammar for code fragments."""
    keywords = "|".join(KEYWORDS)
    return r"""
    ?start: fragment

    fragment: _member* _final?

    _member: statement
           | block_close
           | else_continuation

    _final: unterminated_declaration
          | unterminated_expression
          | dangling_if
          | dangling_foreach

    block_close: "}"
    else_continuation: "}" _ELSE embedded_statement

    dangling_if: _IF "(" expression ")"
    dangling_foreach: _FOREACH "(" type_ref NAME _IN expression ")"

    // ---------------------------------------------------------------- statements

    ?statement: block
              | open_block
              | local_declaration
              | expression_statement
              | if_statement
              | foreach_statement
              | other_block_statement
              | empty_statement

    ?embedded_statement: statement

    block: "{" statement* "}"
    open_block: "{" statement* _OPEN_END

    empty_statement: ";"

    local_declaration: variable_declaration ";"
    unterminated_declaration: variable_declaration

    variable_declaration: type_ref variable_declarator ("," variable_declarator)*
    variable_declarator: NAME [equals_value_clause]
    equals_value_clause: "=" expression

    expression_statement: expression ";"
    unterminated_expression: expression

    if_statement: _IF "(" expression ")" embedded_statement [else_clause]
    else_clause: _ELSE embedded_statement

    foreach_statement: _FOREACH "(" type_ref NAME _IN expression ")" embedded_statement

    other_block_statement: BLOCK_KEYWORD paren_group embedded_statement

    paren_group: "(" _paren_item* ")"
    _paren_item: paren_group
               | PAREN_TEXT
               | STRING
               | VERBATIM_STRING
               | CHAR_LITERAL

    // ---------------------------------------------------------------- types

    type_ref: _VAR                                          -> var_type
            | qualified_name type_arguments? rank_specifier* NULLABLE?
    qualified_name: NAME ("." NAME)*
    type_arguments: "<" type_ref ("," type_ref)* ">"
    rank_specifier: "[" ","* "]"

    // ---------------------------------------------------------------- expressions

    ?expression: conditional
               | unary ASSIGN_OP expression                -> assignment

    ?conditional: coalesce
                | coalesce "?" expression ":" expression   -> conditional

    ?coalesce: logical_or
             | logical_or COALESCE_OP coalesce             -> binary

    ?logical_or: logical_and
               | logical_or OR_OP logical_and              -> binary

    ?logical_and: equality
                | logical_and AND_OP equality              -> binary

    ?equality: relational
             | equality EQUALITY_OP relational             -> binary

    ?relational: additive
               | relational RELATIONAL_OP additive         -> binary
               | relational TYPE_TEST_OP type_ref          -> type_test

    ?additive: multiplicative
             | additive ADDITIVE_OP multiplicative         -> binary

    ?multiplicative: unary
                   | multiplicative MULTIPLICATIVE_OP unary -> binary

    ?unary: postfix
          | PREFIX_OP unary                                -> prefix_unary
          | "(" type_ref ")" postfix                       -> cast

    ?postfix: primary
            | postfix MEMBER_OP NAME                       -> member_access
            | postfix "(" [arguments] ")"                  -> invocation
            | postfix "[" arguments "]"                    -> element_access
            | postfix POSTFIX_OP                           -> postfix_unary

    ?primary: literal
            | NAME                                         -> identifier
            | "(" expression ")"                           -> parenthesized
            | _NEW type_ref "(" [arguments] ")"            -> object_creation

    arguments: argument ("," argument)*
    ?argument: expression
             | NAME ":" expression                         -> named_argument

    literal: STRING
           | VERBATIM_STRING
           | INTERPOLATED_STRING
           | CHAR_LITERAL
           | NUMBER
           | TRUE
           | FALSE
           | NULL

    // ---------------------------------------------------------------- terminals

    _IF: /if\b/
    _ELSE: /else\b/
    _FOREACH: /foreach\b/
    _IN: /in\b/
    _NEW: /new\b/
    _VAR: /var\b/
    BLOCK_KEYWORD: /(?:while|for|switch|using|lock)\b/
    TRUE: /true\b/
    FALSE: /false\b/
    NULL: /null\b/
    TYPE_TEST_OP: /(?:is|as)\b/

    NAME: /(?!(?:__KEYWORDS__)\b)@?[A-Za-z_][A-Za-z0-9_]*/

    STRING: /"(?:[^"\\\n]|\\.)*"/
    VERBATIM_STRING: /@"(?:[^"]|"")*"/
    INTERPOLATED_STRING: /\$@?"(?:[^"\\\n]|\\.)*"/
    CHAR_LITERAL: /'(?:[^'\\\n]|\\.)+'/
    NUMBER: /(?:0[xX][0-9a-fA-F]+|\d+(?:\.\d+)?(?:[eE][+-]?\d+)?)[fFdDmMlLuU]*/

    ASSIGN_OP: /(?:\?\?|[+\-*\/%&|^])?=(?!=)/
    COALESCE_OP: /\?\?(?!=)/
    OR_OP: "||"
    AND_OP: "&&"
    EQUALITY_OP: "==" | "!="
    RELATIONAL_OP: "<=" | ">=" | "<" | ">"
    ADDITIVE_OP: /\+(?![+=])|-(?![\-=])/
    MULTIPLICATIVE_OP: /[*\/%](?!=)/
    PREFIX_OP: /\+\+|--|[!+\-~]/
    POSTFIX_OP: "++" | "--"
    MEMBER_OP: "." | "?."
    NULLABLE: /\?(?![?.])/

    PAREN_TEXT: /[^()"']+/

    _OPEN_END: "__OPEN_BLOCK_END__"

    %import common.WS
    %import common.CPP_COMMENT
    %import common.C_COMMENT
    %ignore WS
    %ignore CPP_COMMENT
    %ignore C_COMMENT
    """.replace("__KEYWORDS__", keywords).replace("__OPEN_BLOCK_END__", OPEN_BLOCK_END)
