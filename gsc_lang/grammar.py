HASH_TABLE_GRAMMAR = r"""
    // A whole table; "line" parses one line on its own.
    start: (entry? _NL)*
    line: entry?

    // 0x1a2b3c4d,name[,anything else]
    entry: HASH "," NAME? _EXTRA?

    HASH: /(0[xX])?[0-9a-fA-F]+/
    NAME: /[^,\r\n]+/
    _EXTRA: /,[^\r\n]*/
    _NL: /\r?\n/

    %ignore /[ \t]+/
    %ignore /#[^\r\n]*/
"""
