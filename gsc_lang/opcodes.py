from enum import Enum, IntEnum
from typing import Dict, List, Tuple

from .models import OpMetadata


class OperandType(Enum):
    NONE = "none"
    INT8 = "int8"
    UINT8 = "uint8"
    INT16 = "int16"
    UINT16 = "uint16"
    INT32 = "int32"
    UINT32 = "uint32"
    HASH = "hash"
    FLOAT = "float"
    VECTOR = "vector"
    VECTOR_FLAGS = "vector_flags"
    STRING = "string"
    VARIABLE_NAME = "variable_name"
    FUNCTION_POINTER = "function_pointer"
    CALL = "call"
    VARIABLE_LIST = "variable_list"
    SWITCH_END = "switch_end"


class ScriptOpType(Enum):
    OTHER = "other"
    RETURN = "return"
    JUMP = "jump"
    JUMP_CONDITION = "jump_condition"
    CALL = "call"
    SWITCH = "switch"


class ScriptOpCode(IntEnum):
    Invalid = -1
    End = 0
    Return = 1
    GetUndefined = 2
    GetZero = 3
    GetByte = 4
    GetNegByte = 5
    GetUnsignedShort = 6
    GetNegUnsignedShort = 7
    GetInteger = 8
    GetFloat = 9
    GetString = 10
    GetIString = 11
    GetVector = 12
    GetLevelObject = 13
    GetAnimObject = 14
    GetSelf = 15
    GetLevel = 16
    GetGame = 17
    GetAnim = 18
    GetAnimation = 19
    GetGameRef = 20
    GetFunction = 21
    CreateLocalVariable = 22
    SafeCreateLocalVariables = 23
    RemoveLocalVariables = 24
    EvalLocalVariableCached = 25
    EvalArray = 26
    EvalLocalArrayRefCached = 27
    EvalArrayRef = 28
    ClearArray = 29
    GetEmptyArray = 30
    GetSelfObject = 31
    EvalFieldVariable = 32
    EvalFieldVariableRef = 33
    ClearFieldVariable = 34
    SetVariableField = 35
    SetLocalVariableCached = 36
    ClearParams = 37
    CheckClearParams = 38
    EvalLocalVariableRefCached = 39
    EvalLocalVariableDefined = 40
    CallBuiltinFunction = 41
    CallBuiltinMethod = 42
    ScriptFunctionCall = 43
    ScriptThreadCall = 44
    ScriptMethodCall = 45
    ScriptMethodThreadCall = 46
    ScriptFunctionCallPointer = 47
    ScriptThreadCallPointer = 48
    ScriptMethodCallPointer = 49
    ScriptMethodThreadCallPointer = 50
    ClassFunctionCall = 51
    ClassFunctionThreadCall = 52
    Jump = 53
    JumpOnTrue = 54
    JumpOnFalse = 55
    JumpOnTrueExpr = 56
    JumpOnFalseExpr = 57
    Wait = 58
    WaitTillFrameEnd = 59
    WaitTill = 60
    WaitTillMatch = 61
    Notify = 62
    EndOn = 63
    Switch = 64
    EndSwitch = 65
    Vector = 66
    GetHash = 67
    VectorConstant = 68
    IsDefined = 69
    VectorScale = 70
    AnglesToUp = 71
    AnglesToRight = 72
    AnglesToForward = 73
    AngleClamp180 = 74
    VectorToAngles = 75
    Abs = 76
    GetTime = 77
    GetDvar = 78
    GetDvarInt = 79
    GetDvarFloat = 80
    GetDvarVector = 81
    GetDvarColorRed = 82
    GetDvarColorGreen = 83
    GetDvarColorBlue = 84
    GetDvarColorAlpha = 85
    FirstArrayKey = 86
    NextArrayKey = 87
    ProfileStart = 88
    ProfileStop = 89
    SafeDecTop = 90
    Nop = 91
    Abort = 92
    Object = 93
    ThreadObject = 94
    EvalLocalVariable = 95
    EvalLocalVariableRef = 96
    DevblockBegin = 97
    DevblockEnd = 98
    BitAnd = 99
    BitOr = 100
    BitXor = 101
    Equal = 102
    NotEqual = 103
    SuperEqual = 104
    SuperNotEqual = 105
    LessThan = 106
    GreaterThan = 107
    LessThanOrEqualTo = 108
    GreaterThanOrEqualTo = 109
    ShiftLeft = 110
    ShiftRight = 111
    Plus = 112
    Minus = 113
    Multiply = 114
    Divide = 115
    Modulus = 116
    SizeOf = 117
    Inc = 118
    Dec = 119
    BoolNot = 120
    BoolComplement = 121
    DecTop = 122
    CastFieldObject = 123
    CastBool = 124
    EvalFieldObjectFromRef = 125
    GetClasses = 126
    GetClassesObject = 127
    New = 128
    GetSignedByte = 129
    GetUnsignedInteger = 130
    WaitRealTime = 131
    IsFalse = 132


_O = OperandType
_T = ScriptOpType

# Opcode -> (category, operand kind). Anything not listed takes (OTHER, NONE).
_OPERATIONS: Dict[ScriptOpCode, Tuple[ScriptOpType, OperandType]] = {
    ScriptOpCode.End: (_T.RETURN, _O.NONE),
    ScriptOpCode.Return: (_T.RETURN, _O.NONE),
    ScriptOpCode.GetByte: (_T.OTHER, _O.UINT8),
    ScriptOpCode.GetNegByte: (_T.OTHER, _O.UINT8),
    ScriptOpCode.GetUnsignedShort: (_T.OTHER, _O.UINT16),
    ScriptOpCode.GetNegUnsignedShort: (_T.OTHER, _O.UINT16),
    ScriptOpCode.GetInteger: (_T.OTHER, _O.INT32),
    ScriptOpCode.GetUnsignedInteger: (_T.OTHER, _O.UINT32),
    ScriptOpCode.GetSignedByte: (_T.OTHER, _O.INT8),
    ScriptOpCode.GetFloat: (_T.OTHER, _O.FLOAT),
    ScriptOpCode.GetString: (_T.OTHER, _O.STRING),
    ScriptOpCode.GetIString: (_T.OTHER, _O.STRING),
    ScriptOpCode.GetAnimation: (_T.OTHER, _O.STRING),
    ScriptOpCode.GetVector: (_T.OTHER, _O.VECTOR),
    ScriptOpCode.VectorConstant: (_T.OTHER, _O.VECTOR_FLAGS),
    ScriptOpCode.GetHash: (_T.OTHER, _O.HASH),
    ScriptOpCode.Object: (_T.OTHER, _O.HASH),
    ScriptOpCode.GetFunction: (_T.OTHER, _O.FUNCTION_POINTER),
    ScriptOpCode.CreateLocalVariable: (_T.OTHER, _O.VARIABLE_NAME),
    ScriptOpCode.EvalFieldVariable: (_T.OTHER, _O.VARIABLE_NAME),
    ScriptOpCode.EvalFieldVariableRef: (_T.OTHER, _O.VARIABLE_NAME),
    ScriptOpCode.ClearFieldVariable: (_T.OTHER, _O.VARIABLE_NAME),
    ScriptOpCode.EvalLocalVariable: (_T.OTHER, _O.VARIABLE_NAME),
    ScriptOpCode.EvalLocalVariableRef: (_T.OTHER, _O.VARIABLE_NAME),
    ScriptOpCode.SafeCreateLocalVariables: (_T.OTHER, _O.VARIABLE_LIST),
    ScriptOpCode.RemoveLocalVariables: (_T.OTHER, _O.UINT8),
    ScriptOpCode.EvalLocalVariableCached: (_T.OTHER, _O.UINT8),
    ScriptOpCode.EvalLocalArrayRefCached: (_T.OTHER, _O.UINT8),
    ScriptOpCode.SetLocalVariableCached: (_T.OTHER, _O.UINT8),
    ScriptOpCode.EvalLocalVariableRefCached: (_T.OTHER, _O.UINT8),
    ScriptOpCode.EvalLocalVariableDefined: (_T.OTHER, _O.UINT8),
    ScriptOpCode.FirstArrayKey: (_T.OTHER, _O.UINT8),
    ScriptOpCode.NextArrayKey: (_T.OTHER, _O.UINT8),
    ScriptOpCode.CallBuiltinFunction: (_T.CALL, _O.CALL),
    ScriptOpCode.CallBuiltinMethod: (_T.CALL, _O.CALL),
    ScriptOpCode.ScriptFunctionCall: (_T.CALL, _O.CALL),
    ScriptOpCode.ScriptThreadCall: (_T.CALL, _O.CALL),
    ScriptOpCode.ScriptMethodCall: (_T.CALL, _O.CALL),
    ScriptOpCode.ScriptMethodThreadCall: (_T.CALL, _O.CALL),
    ScriptOpCode.ClassFunctionCall: (_T.CALL, _O.CALL),
    ScriptOpCode.ClassFunctionThreadCall: (_T.CALL, _O.CALL),
    ScriptOpCode.ScriptFunctionCallPointer: (_T.CALL, _O.UINT8),
    ScriptOpCode.ScriptThreadCallPointer: (_T.CALL, _O.UINT8),
    ScriptOpCode.ScriptMethodCallPointer: (_T.CALL, _O.UINT8),
    ScriptOpCode.ScriptMethodThreadCallPointer: (_T.CALL, _O.UINT8),
    ScriptOpCode.WaitTillMatch: (_T.OTHER, _O.UINT8),
    ScriptOpCode.Jump: (_T.JUMP, _O.INT16),
    ScriptOpCode.DevblockBegin: (_T.JUMP, _O.INT16),
    ScriptOpCode.JumpOnTrue: (_T.JUMP_CONDITION, _O.INT16),
    ScriptOpCode.JumpOnFalse: (_T.JUMP_CONDITION, _O.INT16),
    ScriptOpCode.JumpOnTrueExpr: (_T.JUMP_CONDITION, _O.INT16),
    ScriptOpCode.JumpOnFalseExpr: (_T.JUMP_CONDITION, _O.INT16),
    ScriptOpCode.Switch: (_T.SWITCH, _O.INT32),
    ScriptOpCode.EndSwitch: (_T.SWITCH, _O.SWITCH_END),
}

OPERATION_INFO: Dict[ScriptOpCode, OpMetadata] = {}
for _code in ScriptOpCode:
    _op_type, _operand_type = _OPERATIONS.get(_code, (_T.OTHER, _O.NONE))
    OPERATION_INFO[_code] = OpMetadata(_code, _op_type, _operand_type)

# Byte value -> opcode. Values 0x00-0x84 follow the enum; the rest are unused.
OPCODE_TABLE: List[ScriptOpCode] = [ScriptOpCode.Invalid] * 256
for _code in ScriptOpCode:
    if _code is not ScriptOpCode.Invalid:
        OPCODE_TABLE[int(_code)] = _code

del _code, _op_type, _operand_type


def opcode_byte(code: ScriptOpCode) -> int:
    """Return the byte value that encodes ``code``."""
    return OPCODE_TABLE.index(code)
